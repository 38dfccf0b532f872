from fastapi import APIRouter

from wwallet.api.responses import dump, money, ok
from wwallet.schemas.wallet import (
    AddFundSchema,
    FundRequestOut,
    PayToUserSchema,
    TransactionHistoryItem,
    TransactionOut,
    WithdrawRequestOut,
    WithdrawSchema,
)
from wwallet.services import ledger
from wwallet.services.auth import current_user_dependency, db_dependency

router = APIRouter(prefix="/api/transactions")


@router.post("/add-fund")
def add_fund(form: AddFundSchema, db: db_dependency, user: current_user_dependency):
    request = ledger.request_deposit(db, user.id, form.amount, form.utr)
    return ok(
        "Fund request submitted successfully",
        request=dump(FundRequestOut, request),
    )


@router.post("/pay-to-user")
def pay_to_user(form: PayToUserSchema, db: db_dependency, user: current_user_dependency):
    tx, new_balance = ledger.transfer(db, user.id, form.recipient_wwid, form.amount, form.spin)
    return ok(
        "Payment successful",
        transaction=dump(TransactionOut, tx),
        new_balance=money(new_balance),
    )


@router.post("/withdraw")
def withdraw(form: WithdrawSchema, db: db_dependency, user: current_user_dependency):
    request, new_balance = ledger.request_withdraw(db, user.id, form.amount, form.upi_id)
    return ok(
        "Withdrawal request submitted successfully",
        request=dump(WithdrawRequestOut, request),
        new_balance=money(new_balance),
    )


@router.get("")
def history(db: db_dependency, user: current_user_dependency):
    rows = ledger.list_transactions(db, user.id)
    return [
        TransactionHistoryItem(
            **dump(TransactionOut, row["transaction"]),
            sender_wwid=row["sender_wwid"],
            sender_username=row["sender_username"],
            recipient_wwid=row["recipient_wwid"],
            recipient_username=row["recipient_username"],
        ).model_dump(mode="json")
        for row in rows
    ]
