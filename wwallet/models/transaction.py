import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Uuid
from sqlalchemy.sql import func

from wwallet.db.base import Base

class Transaction(Base):
    """Append-only record of money moved from one account to another."""
    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    sender_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    recipient_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    amount = Column(Numeric(18, 2), nullable=False)

    channel = Column(String(16), nullable=False, default="transfer")  # transfer, api

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
