"""Admin quiz-evaluation schemas."""

import uuid

from app.schemas.common import CamelModel


class EvaluationRequest(CamelModel):
    """POST /api/admin/quiz-evaluation

    ``correctAnswers`` maps question id → correct option index and must
    cover every question of the quiz.
    """

    quiz_id: uuid.UUID
    correct_answers: dict[str, int]


class AttemptScoreRead(CamelModel):
    attempt_id: uuid.UUID
    user_id: uuid.UUID
    user_email: str
    correct_answers: int
    total_questions: int
    score: int


class EvaluationResponse(CamelModel):
    success: bool = True
    message: str
    evaluated_attempts: int
    questions_updated: int
    results: list[AttemptScoreRead]


class EvaluationQuiz(CamelModel):
    id: uuid.UUID
    title: str
    total_questions: int
    questions_with_answers: int


class QuestionEvaluationState(CamelModel):
    id: uuid.UUID
    text: str
    options: list[str]
    correct_option: int | None = None
    has_correct_answer: bool


class AttemptCounts(CamelModel):
    total: int
    evaluated: int
    pending: int
    in_progress: int


class EvaluationStatusResponse(CamelModel):
    """GET /api/admin/quiz-evaluation?quizId=…"""

    quiz: EvaluationQuiz
    questions: list[QuestionEvaluationState]
    attempts: AttemptCounts
    is_fully_evaluated: bool
