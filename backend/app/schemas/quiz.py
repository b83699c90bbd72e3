"""Quiz and question schemas (player view and admin authoring)."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import Field, model_validator

from app.schemas.common import CamelModel, reject_nulls


class QuizStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class QuestionCreate(CamelModel):
    """One question inside POST /api/admin/quizzes or .../questions.

    ``options`` may be a list, a JSON-encoded list or a ``|``-separated
    string; it is normalised before it is stored.
    """

    text: str = Field(min_length=1)
    options: list[str] | str
    position: int | None = None


class QuestionUpdate(CamelModel):
    """PATCH /api/admin/questions/{id}"""

    text: str | None = Field(default=None, min_length=1)
    options: list[str] | str | None = None
    position: int | None = None


class QuizCreate(CamelModel):
    """POST /api/admin/quizzes"""

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    duration_minutes: int = Field(default=30, ge=1)
    passing_score: int = Field(default=70, ge=0, le=100)
    access_price: float = Field(default=0.0, ge=0)
    status: QuizStatus = QuizStatus.ACTIVE
    questions: list[QuestionCreate] = []


class QuizUpdate(CamelModel):
    """PATCH /api/admin/quizzes/{id}"""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    duration_minutes: int | None = Field(default=None, ge=1)
    passing_score: int | None = Field(default=None, ge=0, le=100)
    access_price: float | None = Field(default=None, ge=0)
    status: QuizStatus | None = None

    @model_validator(mode="after")
    def _required_not_null(self) -> "QuizUpdate":
        reject_nulls(
            self, ("title", "duration_minutes", "passing_score", "access_price", "status")
        )
        return self


class QuestionRead(CamelModel):
    """Question as shown to a player — never carries the correct option."""

    id: uuid.UUID
    text: str
    options: list[str]
    position: int


class QuestionAdminRead(QuestionRead):
    correct_option: int | None = None
    has_correct_answer: bool


class QuizSummary(CamelModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    duration_minutes: int
    passing_score: int
    access_price: float
    status: QuizStatus
    question_count: int
    created_at: datetime


class QuizRead(QuizSummary):
    questions: list[QuestionRead]


class QuizAdminRead(QuizSummary):
    questions: list[QuestionAdminRead]
