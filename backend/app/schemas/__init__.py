"""Pydantic schemas — re‑exported for convenience."""

from app.schemas.common import CamelModel, ErrorResponse, SuccessResponse  # noqa: F401
from app.schemas.user import (  # noqa: F401
    AuthResponse,
    UserCreate,
    UserLogin,
    UserRead,
)
from app.schemas.quiz import (  # noqa: F401
    QuestionCreate,
    QuestionRead,
    QuizCreate,
    QuizRead,
)
from app.schemas.evaluation import (  # noqa: F401
    EvaluationRequest,
    EvaluationResponse,
    EvaluationStatusResponse,
)
from app.schemas.allocation import (  # noqa: F401
    AllocationRequest,
    AllocationResponse,
)
