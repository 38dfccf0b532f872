import enum
import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Uuid
from sqlalchemy.sql import func

from wwallet.db.base import Base


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class FundRequest(Base):
    __tablename__ = "fund_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)

    amount = Column(Numeric(18, 2), nullable=False)
    after_tax_amount = Column(Numeric(18, 2), nullable=False)
    utr = Column(String(12), nullable=False)  # bank transfer reference given by the user

    status = Column(String(16), nullable=False, default=RequestStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class WithdrawRequest(Base):
    __tablename__ = "withdraw_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)

    # full amount is held (debited) at request time
    amount = Column(Numeric(18, 2), nullable=False)
    after_tax_amount = Column(Numeric(18, 2), nullable=False)
    upi_id = Column(String(100), nullable=False)

    status = Column(String(16), nullable=False, default=RequestStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
