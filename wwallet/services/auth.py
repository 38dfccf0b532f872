import logging
from typing import Annotated
from uuid import UUID

from passlib.context import CryptContext
from fastapi import Depends, Request
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from wwallet.core.config import settings
from wwallet.core.errors import (
    AccountNotFound,
    Forbidden,
    InvalidCredential,
    NotAuthenticated,
    SessionExpired,
)
from wwallet.db.session import atomic, get_db
from wwallet.models.account import Account

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# session keys
SESSION_USER_KEY = "user_id"
SESSION_PENDING_KEY = "pending_user_id"


def hash_secret(secret: str) -> str:
    return pwd_context.hash(secret)


def verify_secret(secret: str, hashed: str) -> bool:
    return pwd_context.verify(secret, hashed)

# Define a reusable type
db_dependency = Annotated[Session, Depends(get_db)]


def coerce_uuid(value) -> UUID | None:
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError:
        return None


def find_account(db: Session, username_or_phone: str) -> Account | None:
    result = db.execute(
        select(Account).where(
            or_(Account.username == username_or_phone, Account.phone == username_or_phone)
        )
    )
    return result.scalars().first()


def authenticate(db: Session, username_or_phone: str, password: str) -> Account:
    """First login step: password check."""
    account = find_account(db, username_or_phone)
    if account is None:
        # keep timing close to the "wrong password" path
        pwd_context.dummy_verify()
        raise InvalidCredential()
    if not verify_secret(password, account.hashed_password):
        logger.warning("Failed password login for account %s", account.id)
        raise InvalidCredential()
    return account


def verify_pin(db: Session, pending_user_id, spin: str) -> Account:
    """Second login step: S-PIN check for the account that passed step one."""
    user_id = coerce_uuid(pending_user_id) if pending_user_id else None
    if user_id is None:
        raise SessionExpired("Login session expired. Please login again.")

    account = db.get(Account, user_id)
    if account is None:
        raise NotAuthenticated("User not found")
    if not verify_secret(spin, account.hashed_spin):
        logger.warning("Failed S-PIN verification for account %s", account.id)
        raise InvalidCredential("Invalid S-PIN")
    return account


def reset_password(db: Session, username_or_phone: str, spin: str, new_password: str) -> Account:
    with atomic(db):
        account = find_account(db, username_or_phone)
        if account is None:
            raise AccountNotFound()
        if not verify_secret(spin, account.hashed_spin):
            raise InvalidCredential("Invalid S-PIN")
        account.hashed_password = hash_secret(new_password)
    logger.info("Password reset via S-PIN for account %s", account.id)
    return account


def reset_spin(db: Session, username_or_phone: str, password: str, new_spin: str) -> Account:
    with atomic(db):
        account = find_account(db, username_or_phone)
        if account is None:
            raise AccountNotFound()
        if not verify_secret(password, account.hashed_password):
            raise InvalidCredential("Invalid password")
        account.hashed_spin = hash_secret(new_spin)
    logger.info("S-PIN reset via password for account %s", account.id)
    return account


def get_current_user(
    request: Request,
    db: db_dependency
) -> Account:
    user_id = coerce_uuid(request.session.get(SESSION_USER_KEY) or "")

    if not user_id:
        raise NotAuthenticated()

    user = db.get(Account, user_id)
    if not user:
        raise NotAuthenticated("User not found")

    return user


def require_admin(user: Annotated[Account, Depends(get_current_user)]) -> Account:
    if not user.is_admin:
        logger.warning("Non-admin account %s tried an admin action", user.id)
        raise Forbidden("Admin access required")
    return user


current_user_dependency = Annotated[Account, Depends(get_current_user)]
admin_dependency = Annotated[Account, Depends(require_admin)]
