import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Uuid
from sqlalchemy.sql import func

from wwallet.db.base import Base

class LedgerEntry(Base):
    __tablename__ = "ledger_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)

    amount = Column(Numeric(18, 2), nullable=False)  # +credit / -debit
    kind = Column(String(32), nullable=False)  # transfer_out, deposit, gift_claim, ...
    reference = Column(Uuid, nullable=True)  # id of the record that caused it

    created_at = Column(DateTime(timezone=True), server_default=func.now())
