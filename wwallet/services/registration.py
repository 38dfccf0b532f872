"""
Three-step sign-up.

Each step works on a ``PendingRegistration`` row addressed by an opaque
token that the client carries between the steps. The row expires after
``REGISTRATION_TTL_SECONDS``; an unknown or expired token means the client
has to start again.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wwallet.core.config import settings
from wwallet.core.errors import AlreadyExists, SessionExpired
from wwallet.db.session import atomic
from wwallet.models.account import Account
from wwallet.models.registration import PendingRegistration
from wwallet.schemas.auth import WWID_SUFFIX
from wwallet.services.auth import hash_secret

logger = logging.getLogger(__name__)

EXPIRED_MESSAGE = "Registration session expired. Please start registration again."


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _taken(db: Session, column, value) -> bool:
    return db.execute(select(Account.id).where(column == value)).first() is not None


def _load(db: Session, token: str) -> PendingRegistration:
    pending = db.execute(
        select(PendingRegistration).where(PendingRegistration.token == token)
    ).scalars().first()
    if pending is None or _as_utc(pending.expires_at) <= _now():
        raise SessionExpired(EXPIRED_MESSAGE)
    return pending


def start_registration(db: Session, username: str, phone: str, password: str) -> PendingRegistration:
    with atomic(db):
        if _taken(db, Account.username, username):
            raise AlreadyExists("Username already exists")
        if _taken(db, Account.phone, phone):
            raise AlreadyExists("Phone number already registered")

        db.execute(
            delete(PendingRegistration)
            .where(PendingRegistration.expires_at < _now())
            .execution_options(synchronize_session=False)
        )

        pending = PendingRegistration(
            token=secrets.token_urlsafe(32),
            username=username,
            phone=phone,
            hashed_password=hash_secret(password),
            expires_at=_now() + timedelta(seconds=settings.REGISTRATION_TTL_SECONDS),
        )
        db.add(pending)

    logger.info("Registration started for %s", username)
    return pending


def set_registration_wwid(db: Session, token: str, handle: str) -> str:
    wwid = f"{handle}{WWID_SUFFIX}"
    with atomic(db):
        pending = _load(db, token)
        if _taken(db, Account.wwid, wwid):
            raise AlreadyExists("WWID already taken")
        pending.wwid = wwid
    return wwid


def complete_registration(db: Session, token: str, spin: str) -> Account:
    with atomic(db):
        pending = _load(db, token)
        if not pending.wwid:
            raise SessionExpired(EXPIRED_MESSAGE)

        account = Account(
            username=pending.username,
            phone=pending.phone,
            hashed_password=pending.hashed_password,
            wwid=pending.wwid,
            hashed_spin=hash_secret(spin),
            is_admin=pending.username in settings.ADMIN_USERNAMES,
        )
        db.add(account)
        db.delete(pending)
        try:
            db.flush()
        except IntegrityError:
            # somebody finished a registration with the same handle first
            raise AlreadyExists("Username, phone or WWID already taken")

    logger.info("Account %s created (%s)", account.id, account.wwid)
    return account
