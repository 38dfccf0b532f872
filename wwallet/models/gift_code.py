import uuid
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from wwallet.db.base import Base


class GiftCode(Base):
    __tablename__ = "gift_codes"
    __table_args__ = (
        CheckConstraint("remaining_slots >= 0", name="ck_gift_codes_remaining_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    creator_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)

    code = Column(String(20), unique=True, nullable=False, index=True)
    total_slots = Column(Integer, nullable=False)
    remaining_slots = Column(Integer, nullable=False)
    amount_per_slot = Column(Numeric(18, 2), nullable=False)
    comment = Column(String(200), nullable=True)

    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class GiftCodeClaim(Base):
    __tablename__ = "gift_code_claims"
    __table_args__ = (
        UniqueConstraint("gift_code_id", "user_id", name="uq_gift_code_claims_code_user"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    gift_code_id = Column(Uuid, ForeignKey("gift_codes.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
