import uuid
from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from wwallet.db.base import Base

class PendingRegistration(Base):
    """Short-lived state of a sign-up that has not set its WWID and S-PIN yet."""
    __tablename__ = "pending_registrations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    token = Column(String(64), unique=True, nullable=False, index=True)

    username = Column(String(50), nullable=False)
    phone = Column(String(15), nullable=False)
    hashed_password = Column(String, nullable=False)
    wwid = Column(String(32), nullable=True)  # set by step 2

    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
