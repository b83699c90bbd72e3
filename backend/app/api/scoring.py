"""Admin routes for quiz evaluation and points allocation.

Both write paths run inside one transaction that starts by locking the quiz
row, so a failure leaves no partial state and concurrent calls for the same
quiz are serialised.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.db.models import User
from app.db.session import get_db
from app.schemas.allocation import (
    AllocationHistoryItem,
    AllocationHistoryResponse,
    AllocationRequest,
    AllocationResponse,
    AllocationSummary,
    QuizRef,
    WinnerRead,
)
from app.schemas.common import paginate
from app.schemas.evaluation import (
    AttemptCounts,
    AttemptScoreRead,
    EvaluationQuiz,
    EvaluationRequest,
    EvaluationResponse,
    EvaluationStatusResponse,
    QuestionEvaluationState,
)
from app.services.allocation import allocate_points, list_allocation_history
from app.services.evaluation import evaluate_quiz, get_evaluation_status
from app.services.unit_of_work import transaction

logger = logging.getLogger(__name__)
router = APIRouter()


# ── Evaluation ────────────────────────────────────────────────────────────────


@router.post("/quiz-evaluation", response_model=EvaluationResponse)
def evaluate(
    body: EvaluationRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Assign correct answers to a quiz and score every submitted attempt."""
    logger.info("Admin %s evaluating quiz %s", admin.id, body.quiz_id)
    with transaction(db, "quiz evaluation"):
        result = evaluate_quiz(db, body.quiz_id, body.correct_answers)

    return EvaluationResponse(
        message=(
            f"Quiz evaluated successfully. {result.evaluated_attempts} attempts "
            f"evaluated, {result.questions_updated} questions updated."
        ),
        evaluated_attempts=result.evaluated_attempts,
        questions_updated=result.questions_updated,
        results=[AttemptScoreRead.model_validate(r) for r in result.results],
    )


@router.get("/quiz-evaluation", response_model=EvaluationStatusResponse)
def evaluation_status(
    quiz_id: uuid.UUID = Query(..., alias="quizId"),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """Evaluation progress for one quiz."""
    state = get_evaluation_status(db, quiz_id)
    return EvaluationStatusResponse(
        quiz=EvaluationQuiz(
            id=state.quiz.id,
            title=state.quiz.title,
            total_questions=len(state.questions),
            questions_with_answers=state.questions_with_answers,
        ),
        questions=[QuestionEvaluationState.model_validate(q) for q in state.questions],
        attempts=AttemptCounts(
            total=state.total_attempts,
            evaluated=state.evaluated_attempts,
            pending=state.pending_attempts,
            in_progress=state.in_progress_attempts,
        ),
        is_fully_evaluated=state.is_fully_evaluated,
    )


# ── Points allocation ─────────────────────────────────────────────────────────


@router.post("/points-allocation", response_model=AllocationResponse)
def allocate(
    body: AllocationRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Credit the top-scoring players of an evaluated quiz. Allowed once per quiz."""
    with transaction(db, "points allocation"):
        result = allocate_points(
            db,
            body.quiz_id,
            percentage_threshold=body.percentage_threshold,
            points_per_winner=body.points_per_winner,
            allocated_by=admin.id,
        )

    return AllocationResponse(
        message=(
            f"Points allocated successfully to {result.eligible_winners} winners "
            f"({result.total_points_distributed} points in total)."
        ),
        quiz=QuizRef(id=result.quiz_id, title=result.quiz_title),
        allocation=AllocationSummary(
            total_attempts=result.total_attempts,
            eligible_winners=result.eligible_winners,
            points_per_winner=result.points_per_winner,
            total_points_distributed=result.total_points_distributed,
            percentage_threshold=result.percentage_threshold,
        ),
        winners=[WinnerRead.model_validate(w) for w in result.winners],
    )


@router.get("/points-allocation", response_model=AllocationHistoryResponse)
def allocation_history(
    quiz_id: uuid.UUID | None = Query(None, alias="quizId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """Credited winners across allocations, newest first."""
    rows, total = list_allocation_history(db, quiz_id=quiz_id, page=page, limit=limit)
    items = [
        AllocationHistoryItem(
            id=row.id,
            quiz=QuizRef(id=row.quiz.id, title=row.quiz.title),
            user={"id": row.user.id, "name": row.user.name, "email": row.user.email},
            rank=row.rank,
            score=row.score,
            points_awarded=row.points_awarded,
            created_at=row.created_at,
        )
        for row in rows
    ]
    return paginate(items, page, limit, total)
