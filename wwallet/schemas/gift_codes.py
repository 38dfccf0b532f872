from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateGiftCodeSchema(BaseModel):
    total_slots: int = Field(ge=1, le=10000)
    amount_per_slot: Decimal = Field(gt=0, max_digits=16, decimal_places=2)
    code: Optional[str] = Field(default=None, max_length=20)
    comment: Optional[str] = Field(default=None, max_length=200)

    @field_validator("code", "comment")
    @classmethod
    def blank_to_none(cls, value: Optional[str]):
        if value is not None and not value.strip():
            return None
        return value


class ClaimGiftCodeSchema(BaseModel):
    code: str = Field(min_length=1, max_length=20)


class GiftCodeOut(BaseModel):
    id: UUID
    code: str
    total_slots: int
    remaining_slots: int
    amount_per_slot: Decimal
    comment: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class GiftCodeClaimOut(BaseModel):
    id: UUID
    user_id: UUID
    username: Optional[str] = None
    wwid: Optional[str] = None
    amount: Decimal
    created_at: Optional[datetime] = None
