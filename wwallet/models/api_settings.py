import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.sql import func

from wwallet.db.base import Base

class ApiSettings(Base):
    __tablename__ = "api_settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("accounts.id"), unique=True, nullable=False)

    api_enabled = Column(Boolean, nullable=False, default=False)
    api_token = Column(String(64), unique=True, nullable=True)
    domain = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
