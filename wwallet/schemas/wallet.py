from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

Amount = Annotated[Decimal, Field(gt=0, max_digits=16, decimal_places=2)]


class AddFundSchema(BaseModel):
    amount: Amount
    utr: str = Field(min_length=12, max_length=12)


class PayToUserSchema(BaseModel):
    recipient_wwid: str = Field(min_length=5, max_length=32)
    amount: Amount
    spin: str = Field(pattern=r"^\d{4}$")


class WithdrawSchema(BaseModel):
    amount: Amount
    upi_id: str = Field(pattern=r"^[\w.-]+@[\w.-]+$", max_length=100)


class AdjustBalanceSchema(BaseModel):
    user_id: UUID
    change: Annotated[Decimal, Field(max_digits=16, decimal_places=2)]


class TransactionOut(BaseModel):
    id: UUID
    sender_id: UUID
    recipient_id: UUID
    amount: Decimal
    channel: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TransactionHistoryItem(TransactionOut):
    sender_wwid: Optional[str] = None
    sender_username: Optional[str] = None
    recipient_wwid: Optional[str] = None
    recipient_username: Optional[str] = None


class FundRequestOut(BaseModel):
    id: UUID
    user_id: UUID
    amount: Decimal
    after_tax_amount: Decimal
    utr: str
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WithdrawRequestOut(BaseModel):
    id: UUID
    user_id: UUID
    amount: Decimal
    after_tax_amount: Decimal
    upi_id: str
    status: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
