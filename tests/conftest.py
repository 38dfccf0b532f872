import itertools
import os
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ADMIN_USERNAMES", '["admin"]')

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wwallet.db.base import Base
from wwallet.db.session import get_db
from wwallet.main import app
from wwallet.models import (  # noqa: F401
    account,
    api_settings,
    gift_code,
    ledger as ledger_models,
    notification,
    registration,
    requests,
    transaction,
)
from wwallet.models.account import Account
from wwallet.services import ledger
from wwallet.services.auth import hash_secret

DEFAULT_PASSWORD = "secret1"
DEFAULT_SPIN = "1234"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(db):
    """Create an account; a starting balance is posted through the ledger."""
    counter = itertools.count(1)

    def _make(balance="0", username=None, spin=DEFAULT_SPIN, password=DEFAULT_PASSWORD, is_admin=False):
        n = next(counter)
        username = username or f"user{n}"
        account = Account(
            username=username,
            phone=f"98765432{n:02d}",
            hashed_password=hash_secret(password),
            wwid=f"{username}@ww",
            hashed_spin=hash_secret(spin),
            is_admin=is_admin,
        )
        db.add(account)
        db.commit()
        if Decimal(balance) > 0:
            ledger.admin_adjust_balance(db, account.id, Decimal(balance))
        db.refresh(account)
        return account

    return _make


def balance_of(db, account_id) -> Decimal:
    db.expire_all()
    return db.get(Account, account_id).balance
