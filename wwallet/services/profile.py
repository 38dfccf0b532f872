import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from wwallet.core.config import settings
from wwallet.core.errors import AccountNotFound, AlreadyExists, InvalidCredential, InvalidInput
from wwallet.core.money import format_inr
from wwallet.db.session import atomic
from wwallet.models.account import Account
from wwallet.schemas.auth import WWID_SUFFIX, check_password, check_spin, check_wwid_handle
from wwallet.services.auth import hash_secret, verify_secret
from wwallet.services.ledger import debit

logger = logging.getLogger(__name__)

LENGTH_LIMITS = {
    "username": (3, 50),
    "phone": (10, 15),
}


def _check(validator, value: str) -> str:
    try:
        return validator(value)
    except ValueError as e:
        raise InvalidInput(str(e))


def _ensure_free(db: Session, column, value, account_id: UUID, message: str) -> None:
    owner = db.execute(select(Account.id).where(column == value)).scalar_one_or_none()
    if owner is not None and owner != account_id:
        raise AlreadyExists(message)


def update_profile(db: Session, user_id: UUID, field: str, value: str, verify_with: str) -> str:
    """
    Change one profile field of ``user_id`` and return a message for the user.

    The S-PIN is changed by proving the password; every other field needs the
    S-PIN. Changing the WWID costs ``WWID_CHANGE_FEE``.
    """
    with atomic(db):
        account = db.get(Account, user_id)
        if account is None:
            raise AccountNotFound()

        if field == "spin":
            if not verify_secret(verify_with, account.hashed_password):
                raise InvalidCredential("Invalid password")
        elif not verify_secret(verify_with, account.hashed_spin):
            raise InvalidCredential("Invalid S-PIN")

        if field == "wwid":
            handle = value[: -len(WWID_SUFFIX)] if value.endswith(WWID_SUFFIX) else value
            wwid = f"{_check(check_wwid_handle, handle)}{WWID_SUFFIX}"
            if wwid == account.wwid:
                raise InvalidInput("This is already your WWID")
            _ensure_free(db, Account.wwid, wwid, account.id, "WWID already taken")
            debit(db, account.id, settings.WWID_CHANGE_FEE, "wwid_fee")
            account.wwid = wwid
            message = (
                f"WWID changed successfully. {format_inr(settings.WWID_CHANGE_FEE)} "
                "deducted from your balance."
            )
        elif field in LENGTH_LIMITS:
            low, high = LENGTH_LIMITS[field]
            if not low <= len(value) <= high:
                raise InvalidInput(f"{field.capitalize()} must be {low}-{high} characters")
            _ensure_free(db, getattr(Account, field), value, account.id, f"{field.capitalize()} already taken")
            setattr(account, field, value)
            message = f"{field.capitalize()} updated successfully"
        elif field == "password":
            account.hashed_password = hash_secret(_check(check_password, value))
            message = "Password updated successfully"
        elif field == "spin":
            account.hashed_spin = hash_secret(_check(check_spin, value))
            message = "S-PIN updated successfully"
        else:
            raise InvalidInput(f"Unknown field: {field}")

    logger.info("Account %s updated %s", user_id, field)
    return message
