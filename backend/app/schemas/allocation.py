"""Admin points-allocation schemas."""

import uuid
from datetime import datetime

from pydantic import Field

from app.config import settings
from app.schemas.common import CamelModel, Pagination


class AllocationRequest(CamelModel):
    """POST /api/admin/points-allocation

    Range checks happen in the service so they surface as
    ``validation_error`` with a message rather than a schema error.
    """

    quiz_id: uuid.UUID
    points_per_winner: int = Field(default_factory=lambda: settings.DEFAULT_POINTS_PER_WINNER)
    percentage_threshold: float = Field(
        default_factory=lambda: settings.DEFAULT_PERCENTAGE_THRESHOLD
    )


class WinnerRead(CamelModel):
    user_id: uuid.UUID
    user_name: str | None = None
    user_email: str
    score: int
    points_awarded: int
    new_total_points: int
    rank: int


class AllocationSummary(CamelModel):
    total_attempts: int
    eligible_winners: int
    points_per_winner: int
    total_points_distributed: int
    percentage_threshold: float


class QuizRef(CamelModel):
    id: uuid.UUID
    title: str


class AllocationResponse(CamelModel):
    success: bool = True
    message: str
    quiz: QuizRef
    allocation: AllocationSummary
    winners: list[WinnerRead]


class AllocationHistoryUser(CamelModel):
    id: uuid.UUID
    name: str | None = None
    email: str


class AllocationHistoryItem(CamelModel):
    id: uuid.UUID
    quiz: QuizRef
    user: AllocationHistoryUser
    rank: int
    score: int
    points_awarded: int
    created_at: datetime


class AllocationHistoryResponse(CamelModel):
    """GET /api/admin/points-allocation"""

    items: list[AllocationHistoryItem]
    pagination: Pagination
