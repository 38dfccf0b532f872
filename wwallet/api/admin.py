from typing import Optional
from uuid import UUID

from fastapi import APIRouter

from wwallet.api.responses import dump, money, ok
from wwallet.schemas.auth import AccountOut
from wwallet.schemas.wallet import AdjustBalanceSchema, FundRequestOut, WithdrawRequestOut
from wwallet.services import ledger
from wwallet.services.auth import admin_dependency, db_dependency

router = APIRouter(prefix="/api/admin")


@router.get("/users")
def users(db: db_dependency, admin: admin_dependency):
    return [dump(AccountOut, account) for account in ledger.list_accounts(db)]


@router.get("/fund-requests")
def fund_requests(db: db_dependency, admin: admin_dependency, status: Optional[str] = None):
    return [dump(FundRequestOut, r) for r in ledger.list_fund_requests(db, status)]


@router.get("/withdraw-requests")
def withdraw_requests(db: db_dependency, admin: admin_dependency, status: Optional[str] = None):
    return [dump(WithdrawRequestOut, r) for r in ledger.list_withdraw_requests(db, status)]


@router.post("/update-balance")
def update_balance(form: AdjustBalanceSchema, db: db_dependency, admin: admin_dependency):
    new_balance = ledger.admin_adjust_balance(db, form.user_id, form.change)
    return ok(new_balance=money(new_balance))


@router.post("/approve-fund/{request_id}")
def approve_fund(request_id: UUID, db: db_dependency, admin: admin_dependency):
    request, new_balance = ledger.approve_deposit(db, request_id)
    return ok("Fund request approved", request=dump(FundRequestOut, request))


@router.post("/decline-fund/{request_id}")
def decline_fund(request_id: UUID, db: db_dependency, admin: admin_dependency):
    request = ledger.decline_deposit(db, request_id)
    return ok("Fund request declined", request=dump(FundRequestOut, request))


@router.post("/approve-withdraw/{request_id}")
def approve_withdraw(request_id: UUID, db: db_dependency, admin: admin_dependency):
    request = ledger.approve_withdraw(db, request_id)
    return ok("Withdraw request approved", request=dump(WithdrawRequestOut, request))


@router.post("/decline-withdraw/{request_id}")
def decline_withdraw(request_id: UUID, db: db_dependency, admin: admin_dependency):
    request, new_balance = ledger.decline_withdraw(db, request_id)
    return ok("Withdraw request declined", request=dump(WithdrawRequestOut, request))
