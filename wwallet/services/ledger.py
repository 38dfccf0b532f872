"""
Balance-mutation core of the wallet.

Every public operation runs inside ``atomic(db)``: either all of its balance
changes, ledger entries, request rows and notifications are committed, or
none of them are.

- Debits are conditional updates (``balance >= amount``), so a balance can
  never go negative even when two requests race.
- Two-account moves lock both rows in id order before touching them.
- Request status changes only match ``status = 'pending'``, so each request
  is approved or declined at most once.
"""
import logging
import uuid
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, aliased

from wwallet.core.config import settings
from wwallet.core.errors import (
    AccountNotFound,
    ApiDisabled,
    InsufficientBalance,
    InvalidCredential,
    InvalidInput,
    InvalidStateTransition,
    RecipientNotFound,
    RequestNotFound,
    SelfTransferDenied,
)
from wwallet.core.money import format_inr, parse_amount, to_money
from wwallet.db.session import atomic
from wwallet.models.account import Account
from wwallet.models.api_settings import ApiSettings
from wwallet.models.ledger import LedgerEntry
from wwallet.models.requests import FundRequest, RequestStatus, WithdrawRequest
from wwallet.models.transaction import Transaction
from wwallet.services.auth import verify_secret
from wwallet.services.notifications import notify

logger = logging.getLogger(__name__)


def after_tax(amount) -> Decimal:
    """Amount left after the flat processing fee."""
    return to_money(to_money(amount) * (Decimal("1") - settings.FEE_RATE))


def _positive(amount) -> Decimal:
    value = parse_amount(amount)
    if value is None:
        raise InvalidInput("Amount must be a positive value with at most 2 decimals")
    return value


# Primitive postings. Callers own the transaction.

def credit(db: Session, account_id: UUID, amount: Decimal, kind: str, reference: UUID | None = None) -> Decimal:
    stmt = (
        update(Account)
        .where(Account.id == account_id)
        .values(balance=Account.balance + amount)
        .returning(Account.balance)
    )
    new_balance = db.execute(stmt).scalar_one_or_none()
    if new_balance is None:
        raise AccountNotFound()

    db.add(LedgerEntry(account_id=account_id, amount=amount, kind=kind, reference=reference))
    return new_balance


def debit(db: Session, account_id: UUID, amount: Decimal, kind: str, reference: UUID | None = None) -> Decimal:
    # Atomic conditional update prevents overdraft + prevents race conditions
    stmt = (
        update(Account)
        .where(
            Account.id == account_id,
            Account.balance >= amount,
        )
        .values(balance=Account.balance - amount)
        .returning(Account.balance)
    )
    new_balance = db.execute(stmt).scalar_one_or_none()

    if new_balance is None:
        # differentiate "no account" vs "insufficient funds"
        exists = db.execute(select(Account.id).where(Account.id == account_id)).first()
        if exists is None:
            raise AccountNotFound()
        raise InsufficientBalance()

    db.add(LedgerEntry(account_id=account_id, amount=-amount, kind=kind, reference=reference))
    return new_balance


def _lock_accounts(db: Session, *account_ids: UUID) -> None:
    # fixed lock order so two opposite transfers cannot deadlock
    db.execute(
        select(Account.id)
        .where(Account.id.in_(account_ids))
        .order_by(Account.id)
        .with_for_update()
    ).all()


def _move(db: Session, sender: Account, recipient: Account, amount: Decimal, channel: str) -> tuple[Transaction, Decimal]:
    _lock_accounts(db, sender.id, recipient.id)

    tx = Transaction(
        id=uuid.uuid4(),
        sender_id=sender.id,
        recipient_id=recipient.id,
        amount=amount,
        channel=channel,
    )
    new_balance = debit(db, sender.id, amount, "transfer_out", reference=tx.id)
    credit(db, recipient.id, amount, "transfer_in", reference=tx.id)
    db.add(tx)
    return tx, new_balance


# Transfers

def transfer(db: Session, sender_id: UUID, recipient_wwid: str, amount, spin: str) -> tuple[Transaction, Decimal]:
    """Pay another account, addressed by WWID, after checking the sender's S-PIN."""
    amount = _positive(amount)

    with atomic(db):
        sender = db.get(Account, sender_id)
        if sender is None:
            raise AccountNotFound("Sender not found")

        recipient = db.execute(
            select(Account).where(Account.wwid == recipient_wwid)
        ).scalars().first()
        if recipient is None:
            raise RecipientNotFound()

        if sender.id == recipient.id:
            raise SelfTransferDenied()

        if not verify_secret(spin, sender.hashed_spin):
            raise InvalidCredential("Invalid S-PIN")

        tx, new_balance = _move(db, sender, recipient, amount, channel="transfer")

        notify(
            db, recipient.id, "payment_received", "Payment Received",
            f"You received {format_inr(amount)} from {sender.wwid}",
        )

    logger.info("Transfer %s: %s -> %s, %s", tx.id, sender_id, recipient.id, amount)
    return tx, new_balance


def api_payment(db: Session, token: str, recipient_wwid: str, amount) -> tuple[Transaction, Decimal]:
    """Token-gated transfer from the API owner's account, no session or S-PIN."""
    with atomic(db):
        api_settings = db.execute(
            select(ApiSettings).where(ApiSettings.api_token == token)
        ).scalars().first() if token else None
        if api_settings is None:
            raise InvalidCredential("Invalid or revoked API token")
        if not api_settings.api_enabled:
            raise ApiDisabled()

        recipient = db.execute(
            select(Account).where(Account.wwid == recipient_wwid)
        ).scalars().first()
        if recipient is None:
            raise RecipientNotFound("Recipient WWID not found")

        amount = _positive(amount)

        payer = db.get(Account, api_settings.user_id)
        if payer is None:
            raise AccountNotFound("API owner not found")
        if payer.id == recipient.id:
            raise SelfTransferDenied()

        tx, new_balance = _move(db, payer, recipient, amount, channel="api")

        notify(
            db, payer.id, "api_payment_sent", "API Payment Sent",
            f"{format_inr(amount)} sent to {recipient.wwid} via API",
        )
        notify(
            db, recipient.id, "payment_received", "Payment Received",
            f"You received {format_inr(amount)} from {payer.wwid} via API",
        )

    logger.info("API payment %s: %s -> %s, %s", tx.id, tx.sender_id, tx.recipient_id, amount)
    return tx, new_balance


# Deposits

def request_deposit(db: Session, user_id: UUID, amount, utr: str) -> FundRequest:
    amount = _positive(amount)
    if amount < settings.MIN_DEPOSIT:
        raise InvalidInput(f"Minimum amount is {format_inr(settings.MIN_DEPOSIT)}")

    with atomic(db):
        if db.get(Account, user_id) is None:
            raise AccountNotFound()

        request = FundRequest(
            user_id=user_id,
            amount=amount,
            after_tax_amount=after_tax(amount),
            utr=utr,
            status=RequestStatus.PENDING.value,
        )
        db.add(request)

    logger.info("Fund request %s submitted by %s for %s", request.id, user_id, amount)
    return request


def _transition(db: Session, model, request_id: UUID, new_status: RequestStatus):
    stmt = (
        update(model)
        .where(model.id == request_id, model.status == RequestStatus.PENDING.value)
        .values(status=new_status.value)
        .returning(model)
    )
    request = db.execute(stmt).scalars().first()
    if request is None:
        existing = db.get(model, request_id, populate_existing=True)
        if existing is None:
            raise RequestNotFound()
        raise InvalidStateTransition(f"Request is already {existing.status}")
    return request


def approve_deposit(db: Session, request_id: UUID) -> tuple[FundRequest, Decimal]:
    with atomic(db):
        request = _transition(db, FundRequest, request_id, RequestStatus.APPROVED)
        new_balance = credit(db, request.user_id, request.after_tax_amount, "deposit", reference=request.id)
        notify(
            db, request.user_id, "fund_approved", "Fund Request Approved",
            f"Your fund request of {format_inr(request.amount)} has been approved. "
            f"{format_inr(request.after_tax_amount)} added to your account.",
        )

    logger.info("Fund request %s approved", request_id)
    return request, new_balance


def decline_deposit(db: Session, request_id: UUID) -> FundRequest:
    with atomic(db):
        request = _transition(db, FundRequest, request_id, RequestStatus.DECLINED)
        notify(
            db, request.user_id, "fund_declined", "Fund Request Declined",
            f"Your fund request of {format_inr(request.amount)} has been declined.",
        )

    logger.info("Fund request %s declined", request_id)
    return request


# Withdrawals

def request_withdraw(db: Session, user_id: UUID, amount, upi_id: str) -> tuple[WithdrawRequest, Decimal]:
    """Hold the full amount now; the payout is the fee-adjusted amount."""
    amount = _positive(amount)
    if amount < settings.MIN_WITHDRAW:
        raise InvalidInput(f"Minimum withdrawal is {format_inr(settings.MIN_WITHDRAW)}")

    with atomic(db):
        request = WithdrawRequest(
            id=uuid.uuid4(),
            user_id=user_id,
            amount=amount,
            after_tax_amount=after_tax(amount),
            upi_id=upi_id,
            status=RequestStatus.PENDING.value,
        )
        new_balance = debit(db, user_id, amount, "withdraw_hold", reference=request.id)
        db.add(request)

    logger.info("Withdraw request %s submitted by %s for %s", request.id, user_id, amount)
    return request, new_balance


def approve_withdraw(db: Session, request_id: UUID) -> WithdrawRequest:
    with atomic(db):
        request = _transition(db, WithdrawRequest, request_id, RequestStatus.APPROVED)
        notify(
            db, request.user_id, "withdraw_approved", "Withdraw Request Approved",
            f"Your withdraw request of {format_inr(request.amount)} has been approved. "
            f"{format_inr(request.after_tax_amount)} will be sent to {request.upi_id}.",
        )

    logger.info("Withdraw request %s approved", request_id)
    return request


def decline_withdraw(db: Session, request_id: UUID) -> tuple[WithdrawRequest, Decimal]:
    with atomic(db):
        request = _transition(db, WithdrawRequest, request_id, RequestStatus.DECLINED)
        new_balance = credit(db, request.user_id, request.amount, "withdraw_refund", reference=request.id)
        notify(
            db, request.user_id, "withdraw_declined", "Withdraw Request Declined",
            f"Your withdraw request of {format_inr(request.amount)} has been declined. "
            "Amount refunded to your balance.",
        )

    logger.info("Withdraw request %s declined, %s refunded", request_id, request.amount)
    return request, new_balance


# Admin corrections

def admin_adjust_balance(db: Session, user_id: UUID, delta) -> Decimal:
    delta = to_money(delta)
    if delta == 0:
        raise InvalidInput("Change must not be zero")

    with atomic(db):
        if delta > 0:
            new_balance = credit(db, user_id, delta, "admin_adjust")
        else:
            new_balance = debit(db, user_id, -delta, "admin_adjust")

    logger.info("Admin adjusted balance of %s by %s", user_id, delta)
    return new_balance


# Read side

def list_transactions(db: Session, user_id: UUID, limit: int = 100) -> list[dict]:
    sender = aliased(Account)
    recipient = aliased(Account)
    stmt = (
        select(Transaction, sender.wwid, sender.username, recipient.wwid, recipient.username)
        .join(sender, Transaction.sender_id == sender.id)
        .join(recipient, Transaction.recipient_id == recipient.id)
        .where(or_(Transaction.sender_id == user_id, Transaction.recipient_id == user_id))
        .order_by(Transaction.created_at.desc())
        .limit(limit)
    )
    return [
        {
            "transaction": tx,
            "sender_wwid": sender_wwid,
            "sender_username": sender_username,
            "recipient_wwid": recipient_wwid,
            "recipient_username": recipient_username,
        }
        for tx, sender_wwid, sender_username, recipient_wwid, recipient_username in db.execute(stmt).all()
    ]


def list_fund_requests(db: Session, status: Optional[str] = None) -> list[FundRequest]:
    stmt = select(FundRequest).order_by(FundRequest.created_at.desc())
    if status:
        stmt = stmt.where(FundRequest.status == status)
    return list(db.execute(stmt).scalars().all())


def list_withdraw_requests(db: Session, status: Optional[str] = None) -> list[WithdrawRequest]:
    stmt = select(WithdrawRequest).order_by(WithdrawRequest.created_at.desc())
    if status:
        stmt = stmt.where(WithdrawRequest.status == status)
    return list(db.execute(stmt).scalars().all())


def list_accounts(db: Session) -> list[Account]:
    return list(db.execute(select(Account).order_by(Account.created_at.desc())).scalars().all())


def ledger_total(db: Session, account_id: UUID) -> Decimal:
    """Sum of all postings of an account; equals its balance."""
    entries = db.execute(
        select(LedgerEntry.amount).where(LedgerEntry.account_id == account_id)
    ).scalars().all()
    return to_money(sum(entries, Decimal("0")))
