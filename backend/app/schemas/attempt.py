"""Quiz attempt schemas."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import Field

from app.db.models import UNANSWERED
from app.schemas.common import CamelModel
from app.schemas.quiz import QuizRead


class AttemptState(str, Enum):
    IN_PROGRESS = "in_progress"
    PENDING_EVALUATION = "pending_evaluation"
    EVALUATED = "evaluated"


class AnswerIn(CamelModel):
    """A single selection; ``-1`` leaves the question unanswered."""

    question_id: uuid.UUID
    selected_option: int = Field(ge=UNANSWERED)


class SubmitRequest(CamelModel):
    """POST /api/quizzes/{id}/submit"""

    answers: list[AnswerIn]


class AttemptRead(CamelModel):
    id: uuid.UUID
    quiz_id: uuid.UUID
    user_id: uuid.UUID
    score: int
    points: int
    is_completed: bool
    is_evaluated: bool
    timed_out: bool
    started_at: datetime
    deadline_at: datetime | None = None
    completed_at: datetime | None = None


class StartResponse(CamelModel):
    attempt: AttemptRead
    remaining_seconds: int
    quiz: QuizRead


class SaveAnswerResponse(CamelModel):
    saved: bool
    is_completed: bool
    remaining_seconds: int


class SubmitResponse(CamelModel):
    success: bool = True
    status: AttemptState
    attempt: AttemptRead
    submitted_answers: int
    total_questions: int
    timed_out: bool


class ResultAnswer(CamelModel):
    question_id: uuid.UUID
    question_text: str
    options: list[str]
    selected_option: int
    correct_option: int | None = None
    is_correct: bool | None = None


class ResultResponse(CamelModel):
    status: AttemptState
    attempt: AttemptRead
    correct_answers: int | None = None
    total_questions: int
    answers: list[ResultAnswer]
