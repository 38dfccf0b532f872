"""
Gift codes: prepaid vouchers paying a fixed amount to each of N claimers.

The creator pays ``total_slots * amount_per_slot`` up front. Every claim pays
out one slot; stopping a code refunds the unclaimed slots, so claims plus the
stop refund always add up to the up-front cost.
"""
import logging
import re
import secrets
import string
import uuid
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wwallet.core.errors import (
    AlreadyClaimed,
    AlreadyExists,
    CodeExhausted,
    CodeInactive,
    CodeNotFound,
    Forbidden,
    InvalidInput,
)
from wwallet.core.money import parse_amount, to_money
from wwallet.db.session import atomic
from wwallet.models.account import Account
from wwallet.models.gift_code import GiftCode, GiftCodeClaim
from wwallet.services.ledger import credit, debit

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 7
CUSTOM_CODE_PATTERN = re.compile(r"^[A-Z0-9]{4,20}$")
MAX_CODE_ATTEMPTS = 10


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _code_taken(db: Session, code: str) -> bool:
    return db.execute(select(GiftCode.id).where(GiftCode.code == code)).first() is not None


def generate_code(db: Session) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
        if not _code_taken(db, code):
            return code
    raise RuntimeError("Failed to generate unique gift code after multiple attempts")


def create_gift_code(
    db: Session,
    creator_id: UUID,
    total_slots: int,
    amount_per_slot,
    custom_code: Optional[str] = None,
    comment: Optional[str] = None,
) -> tuple[GiftCode, Decimal]:
    if not isinstance(total_slots, int) or isinstance(total_slots, bool) or total_slots < 1:
        raise InvalidInput("Invalid number of users")
    amount = parse_amount(amount_per_slot)
    if amount is None:
        raise InvalidInput("Invalid amount per user")
    cost = to_money(amount * total_slots)

    with atomic(db):
        if custom_code:
            code = normalize_code(custom_code)
            if not CUSTOM_CODE_PATTERN.match(code):
                raise InvalidInput("Code must be 4-20 letters or digits")
            if _code_taken(db, code):
                raise AlreadyExists("Gift code already exists")
        else:
            code = generate_code(db)

        gift = GiftCode(
            id=uuid.uuid4(),
            creator_id=creator_id,
            code=code,
            total_slots=total_slots,
            remaining_slots=total_slots,
            amount_per_slot=amount,
            comment=comment,
            active=True,
        )
        new_balance = debit(db, creator_id, cost, "gift_create", reference=gift.id)
        db.add(gift)
        try:
            db.flush()
        except IntegrityError:
            raise AlreadyExists("Gift code already exists")

    logger.info("Gift code %s created by %s: %s x %s", code, creator_id, total_slots, amount)
    return gift, new_balance


def _load_for_update(db: Session, code: str) -> GiftCode:
    gift = db.execute(
        select(GiftCode).where(GiftCode.code == normalize_code(code)).with_for_update()
    ).scalars().first()
    if gift is None:
        raise CodeNotFound()
    return gift


def claim_gift_code(db: Session, user_id: UUID, code: str) -> tuple[GiftCode, Decimal, Decimal]:
    """Pay one slot of ``code`` to ``user_id``. Each account claims a code once."""
    with atomic(db):
        gift = _load_for_update(db, code)
        if not gift.active:
            raise CodeInactive()
        if gift.remaining_slots <= 0:
            raise CodeExhausted()

        already = db.execute(
            select(GiftCodeClaim.id).where(
                GiftCodeClaim.gift_code_id == gift.id,
                GiftCodeClaim.user_id == user_id,
            )
        ).first()
        if already is not None:
            raise AlreadyClaimed()

        remaining = db.execute(
            update(GiftCode)
            .where(
                GiftCode.id == gift.id,
                GiftCode.active.is_(True),
                GiftCode.remaining_slots > 0,
            )
            .values(remaining_slots=GiftCode.remaining_slots - 1)
            .returning(GiftCode.remaining_slots)
        ).scalar_one_or_none()
        if remaining is None:
            raise CodeExhausted()

        amount = gift.amount_per_slot
        claim = GiftCodeClaim(id=uuid.uuid4(), gift_code_id=gift.id, user_id=user_id, amount=amount)
        db.add(claim)
        try:
            db.flush()
        except IntegrityError:
            # unique (gift_code_id, user_id) lost a race with a parallel claim
            raise AlreadyClaimed()

        new_balance = credit(db, user_id, amount, "gift_claim", reference=claim.id)

    logger.info("Gift code %s claimed by %s (%s slots left)", gift.code, user_id, remaining)
    return gift, amount, new_balance


def stop_gift_code(db: Session, code: str, creator_id: UUID) -> tuple[GiftCode, Decimal, Decimal]:
    """Deactivate a code and refund its unclaimed slots to the creator."""
    with atomic(db):
        gift = _load_for_update(db, code)
        if gift.creator_id != creator_id:
            raise Forbidden("Only the creator can stop this code")
        if not gift.active:
            raise CodeInactive("Gift code is already stopped")

        refund = to_money(gift.amount_per_slot * gift.remaining_slots)
        gift.active = False
        gift.remaining_slots = 0

        if refund > 0:
            new_balance = credit(db, creator_id, refund, "gift_refund", reference=gift.id)
        else:
            new_balance = db.execute(
                select(Account.balance).where(Account.id == creator_id)
            ).scalar_one()

    logger.info("Gift code %s stopped by %s, refunded %s", gift.code, creator_id, refund)
    return gift, refund, new_balance


def list_my_codes(db: Session, creator_id: UUID) -> list[GiftCode]:
    stmt = (
        select(GiftCode)
        .where(GiftCode.creator_id == creator_id)
        .order_by(GiftCode.created_at.desc())
    )
    return list(db.execute(stmt).scalars().all())


def list_claims(db: Session, code_id: UUID, creator_id: UUID) -> list[dict]:
    gift = db.get(GiftCode, code_id)
    if gift is None:
        raise CodeNotFound()
    if gift.creator_id != creator_id:
        raise Forbidden("Only the creator can see claims of this code")

    stmt = (
        select(GiftCodeClaim, Account.username, Account.wwid)
        .join(Account, GiftCodeClaim.user_id == Account.id)
        .where(GiftCodeClaim.gift_code_id == code_id)
        .order_by(GiftCodeClaim.created_at.desc())
    )
    return [
        {
            "id": claim.id,
            "user_id": claim.user_id,
            "username": username,
            "wwid": wwid,
            "amount": claim.amount,
            "created_at": claim.created_at,
        }
        for claim, username, wwid in db.execute(stmt).all()
    ]
