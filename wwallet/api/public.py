from decimal import Decimal, InvalidOperation
from typing import Optional

from fastapi import APIRouter, Header, Query

from wwallet.api.responses import dump, money, ok
from wwallet.core.errors import InvalidInput
from wwallet.core.money import to_money
from wwallet.schemas.wallet import TransactionOut
from wwallet.services import ledger
from wwallet.services.auth import db_dependency

router = APIRouter()


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip()
    return None


def _query_amount(raw: str) -> Decimal:
    # merchants send free-form numbers, round them to cents
    try:
        return to_money(Decimal(raw.strip()))
    except InvalidOperation:
        raise InvalidInput("Invalid amount")


@router.get("/api/wallet")
def api_wallet_payment(
    db: db_dependency,
    api_type: Optional[str] = Query(None, alias="type"),
    wwid: Optional[str] = None,
    amount: Optional[str] = None,
    token: Optional[str] = None,
    authorization: Optional[str] = Header(None),
):
    """
    Public pay endpoint for merchants: pays ``amount`` to ``wwid`` from the token owner.

    ``amount`` is rounded half-up to two decimals before it is charged.
    """
    if api_type != "wallet":
        raise InvalidInput("Invalid API type")

    token = _bearer(authorization) or token
    if not token or not wwid or not amount:
        raise InvalidInput("Missing required parameters: token, wwid, amount")

    tx, new_balance = ledger.api_payment(db, token, wwid, _query_amount(amount))
    return ok(
        "Payment successful",
        transaction=dump(TransactionOut, tx),
        new_balance=money(new_balance),
    )
