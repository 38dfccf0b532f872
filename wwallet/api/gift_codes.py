from uuid import UUID

from fastapi import APIRouter

from wwallet.api.responses import dump, money, ok
from wwallet.schemas.gift_codes import (
    ClaimGiftCodeSchema,
    CreateGiftCodeSchema,
    GiftCodeClaimOut,
    GiftCodeOut,
)
from wwallet.services import gift_codes
from wwallet.services.auth import current_user_dependency, db_dependency

router = APIRouter(prefix="/api/gift-codes")


@router.post("/create")
def create(form: CreateGiftCodeSchema, db: db_dependency, user: current_user_dependency):
    gift, new_balance = gift_codes.create_gift_code(
        db, user.id, form.total_slots, form.amount_per_slot,
        custom_code=form.code, comment=form.comment,
    )
    return ok(
        "Gift code created",
        gift_code=dump(GiftCodeOut, gift),
        new_balance=money(new_balance),
    )


@router.post("/claim")
def claim(form: ClaimGiftCodeSchema, db: db_dependency, user: current_user_dependency):
    gift, amount, new_balance = gift_codes.claim_gift_code(db, user.id, form.code)
    return ok(
        f"You received ₹{money(amount)}",
        code=gift.code,
        amount=money(amount),
        new_balance=money(new_balance),
    )


@router.get("/my-codes")
def my_codes(db: db_dependency, user: current_user_dependency):
    return [dump(GiftCodeOut, gift) for gift in gift_codes.list_my_codes(db, user.id)]


@router.get("/{code_id}/claims")
def claims(code_id: UUID, db: db_dependency, user: current_user_dependency):
    return [dump(GiftCodeClaimOut, row) for row in gift_codes.list_claims(db, code_id, user.id)]


@router.post("/{code}/stop")
def stop(code: str, db: db_dependency, user: current_user_dependency):
    gift, refund, new_balance = gift_codes.stop_gift_code(db, code, user.id)
    return ok(
        "Code stopped",
        code=gift.code,
        refunded=money(refund),
        new_balance=money(new_balance),
    )
