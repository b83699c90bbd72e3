"""Prize catalogue and redemption schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from app.schemas.common import CamelModel, reject_nulls


class RedemptionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FULFILLED = "fulfilled"


class PrizeCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    image_url: str | None = None
    category: str = "general"
    points_required: int = Field(gt=0)
    stock: int = Field(default=0, ge=0)
    is_active: bool = True


class PrizeUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    image_url: str | None = None
    category: str | None = None
    points_required: int | None = Field(default=None, gt=0)
    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @model_validator(mode="after")
    def _required_not_null(self) -> "PrizeUpdate":
        reject_nulls(self, ("name", "category", "points_required", "stock", "is_active"))
        return self


class PrizeRead(CamelModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    image_url: str | None = None
    category: str
    points_required: int
    stock: int
    is_active: bool


class RedemptionRequest(CamelModel):
    """POST /api/prize-redemption"""

    prize_id: uuid.UUID
    full_name: str | None = Field(default=None, max_length=100)
    whatsapp_number: str | None = Field(default=None, max_length=20)
    address: str | None = None


class RedemptionRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    prize_id: uuid.UUID
    prize_name: str
    points_used: int
    status: RedemptionStatus
    full_name: str | None = None
    whatsapp_number: str | None = None
    address: str | None = None
    notes: str | None = None
    requested_at: datetime
    processed_at: datetime | None = None

    @classmethod
    def from_claim(cls, claim) -> "RedemptionRead":
        return cls(
            id=claim.id,
            user_id=claim.user_id,
            prize_id=claim.prize_id,
            prize_name=claim.prize.name,
            points_used=claim.points_used,
            status=claim.status.value,
            full_name=claim.full_name,
            whatsapp_number=claim.whatsapp_number,
            address=claim.address,
            notes=claim.notes,
            requested_at=claim.requested_at,
            processed_at=claim.processed_at,
        )


class ClaimUpdate(CamelModel):
    """PUT /api/admin/claims/{id}"""

    status: RedemptionStatus
    notes: str | None = None
