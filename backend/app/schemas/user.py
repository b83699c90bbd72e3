"""User & authentication schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.core.security import PHONE_PATTERN, normalize_phone
from app.schemas.common import reject_nulls


def _check_phone(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Phone must be 03XXXXXXXXX or +92XXXXXXXXXX")
    return normalize_phone(value)


class UserCreate(BaseModel):
    """POST /api/users/register"""

    email: EmailStr
    password: str = Field(min_length=6)
    name: str
    phone: str | None = None

    @field_validator("phone")
    @classmethod
    def _valid_phone(cls, v: str | None) -> str | None:
        return _check_phone(v)


class UserLogin(BaseModel):
    """POST /api/users/login"""

    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    """PATCH /api/users/me"""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    email: EmailStr | None = None
    phone: str | None = None

    @field_validator("phone")
    @classmethod
    def _valid_phone(cls, v: str | None) -> str | None:
        return _check_phone(v)

    @model_validator(mode="after")
    def _required_not_null(self) -> "ProfileUpdate":
        reject_nulls(self, ("name", "email"))
        return self


class PasswordChange(BaseModel):
    """PUT /api/users/me/password"""

    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)


class ForgotEmailRequest(BaseModel):
    """POST /api/users/forgot-email"""

    phone: str

    @field_validator("phone")
    @classmethod
    def _valid_phone(cls, v: str) -> str:
        return _check_phone(v)


class ForgotEmailResponse(BaseModel):
    masked_email: str


class UserRead(BaseModel):
    """User returned from API — never exposes password."""

    id: uuid.UUID
    email: str
    name: str | None = None
    phone: str | None = None
    role: str
    is_active: bool
    points: int
    wallet_balance: float
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Combined auth response: token + user profile."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead
