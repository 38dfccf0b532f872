import re
from typing import Literal
from uuid import UUID
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SPIN_PATTERN = re.compile(r"^\d{4}$")
WWID_HANDLE_PATTERN = re.compile(r"^[a-z0-9]{3,20}$")
WWID_SUFFIX = "@ww"


def check_spin(spin: str) -> str:
    if not SPIN_PATTERN.match(spin):
        raise ValueError("S-PIN must be exactly 4 digits")
    return spin


def check_wwid_handle(handle: str) -> str:
    if not WWID_HANDLE_PATTERN.match(handle):
        raise ValueError("WWID must be 3-20 characters, lowercase letters and numbers only")
    return handle


def check_password(password: str) -> str:
    if len(password) < 6:
        raise ValueError("Password too short (min 6 characters)")
    return password


class RegisterSchema(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    phone: str = Field(min_length=10, max_length=15)
    password: str = Field(max_length=72)

    @field_validator("password")
    @classmethod
    def validate_password(cls, password: str):
        return check_password(password)


class RegistrationStep(BaseModel):
    registration_token: str = Field(min_length=1, max_length=64)


class WwidSchema(RegistrationStep):
    wwid: str

    @field_validator("wwid")
    @classmethod
    def validate_wwid(cls, wwid: str):
        return check_wwid_handle(wwid)


class SpinSchema(RegistrationStep):
    spin: str

    @field_validator("spin")
    @classmethod
    def validate_spin(cls, spin: str):
        return check_spin(spin)


class LoginSchema(BaseModel):
    username_or_phone: str = Field(min_length=3)
    password: str = Field(min_length=6, max_length=72)


class VerifyPinSchema(BaseModel):
    spin: str

    @field_validator("spin")
    @classmethod
    def validate_spin(cls, spin: str):
        return check_spin(spin)


class ForgotPasswordSchema(BaseModel):
    """Resets the password by proving the S-PIN."""
    username_or_phone: str = Field(min_length=3)
    spin: str
    new_password: str = Field(max_length=72)

    @field_validator("spin")
    @classmethod
    def validate_spin(cls, spin: str):
        return check_spin(spin)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, password: str):
        return check_password(password)


class ForgotSpinSchema(BaseModel):
    """Resets the S-PIN by proving the password."""
    username_or_phone: str = Field(min_length=3)
    password: str = Field(min_length=6, max_length=72)
    new_spin: str

    @field_validator("new_spin")
    @classmethod
    def validate_new_spin(cls, spin: str):
        return check_spin(spin)


class ProfileUpdateSchema(BaseModel):
    field: Literal["username", "phone", "wwid", "password", "spin"]
    value: str = Field(min_length=1, max_length=72)
    verify_with: str = Field(min_length=1, max_length=72)


class AccountOut(BaseModel):
    id: UUID
    username: str
    phone: str
    wwid: str
    balance: Decimal
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)
