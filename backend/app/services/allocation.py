"""Points allocation: credit the top-scoring players of an evaluated quiz.

Winner count is ``max(1, ceil(total_attempts * threshold / 100))``. Ties on
score go to the earlier submission (``completed_at``), then the earlier start,
then attempt id, so the same data always yields the same winners.

Each quiz can be allocated once. The ``points_allocations`` row written here is
checked under the quiz row lock, so a second call (sequential or concurrent)
is rejected instead of paying twice.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from fractions import Fraction

from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import ConflictError, InvalidRequestError
from app.db.models import (
    AllocationWinner,
    PointsAllocation,
    QuizAttempt,
    as_utc,
)
from app.services.unit_of_work import lock_quiz

logger = logging.getLogger(__name__)

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


@dataclass
class WinnerRecord:
    user_id: uuid.UUID
    user_name: str | None
    user_email: str
    score: int
    points_awarded: int
    new_total_points: int
    rank: int


@dataclass
class AllocationResult:
    quiz_id: uuid.UUID
    quiz_title: str
    total_attempts: int
    eligible_winners: int
    points_per_winner: int
    percentage_threshold: float
    winners: list[WinnerRecord] = field(default_factory=list)

    @property
    def total_points_distributed(self) -> int:
        return self.eligible_winners * self.points_per_winner


def winner_count(total_attempts: int, percentage_threshold: float) -> int:
    """Number of winners for *total_attempts* at *percentage_threshold* percent."""
    share = Fraction(percentage_threshold).limit_denominator(1_000_000)
    return max(1, math.ceil(total_attempts * share / 100))


def _ranking_key(attempt: QuizAttempt):
    return (
        -attempt.score,
        as_utc(attempt.completed_at) or _FAR_FUTURE,
        as_utc(attempt.started_at) or _FAR_FUTURE,
        str(attempt.id),
    )


def select_winners(
    attempts: list[QuizAttempt], percentage_threshold: float
) -> list[QuizAttempt]:
    """Return the top-ranked attempts, best first."""
    ranked = sorted(attempts, key=_ranking_key)
    return ranked[: winner_count(len(ranked), percentage_threshold)]


def validate_allocation_input(percentage_threshold: float, points_per_winner: int) -> None:
    if not 1 <= percentage_threshold <= 100:
        raise InvalidRequestError(
            "percentageThreshold must be between 1 and 100",
            details={"percentage_threshold": percentage_threshold},
        )
    if not 1 <= points_per_winner <= settings.MAX_POINTS_PER_WINNER:
        raise InvalidRequestError(
            f"pointsPerWinner must be between 1 and {settings.MAX_POINTS_PER_WINNER}",
            details={"points_per_winner": points_per_winner},
        )


def allocate_points(
    db: Session,
    quiz_id: uuid.UUID,
    percentage_threshold: float,
    points_per_winner: int,
    allocated_by: uuid.UUID | None = None,
) -> AllocationResult:
    """Credit ``points_per_winner`` to each top-percentile player of *quiz_id*.

    Raises:
        InvalidRequestError: bad threshold / points, no submitted attempts,
            or an attempt that is not yet evaluated.
        NotFoundError: the quiz does not exist.
        ConflictError: points were already allocated for this quiz.
    """
    validate_allocation_input(percentage_threshold, points_per_winner)
    quiz = lock_quiz(db, quiz_id)

    existing = (
        db.query(PointsAllocation).filter(PointsAllocation.quiz_id == quiz.id).first()
    )
    if existing is not None:
        raise ConflictError(
            "Points have already been allocated for this quiz",
            details={
                "allocation_id": str(existing.id),
                "allocated_at": existing.created_at.isoformat(),
            },
        )

    attempts = (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz.id, QuizAttempt.is_completed.is_(True))
        .all()
    )
    if not attempts:
        raise InvalidRequestError("No evaluated quiz attempts found for this quiz")

    pending = [str(a.id) for a in attempts if not a.is_evaluated]
    if pending:
        raise InvalidRequestError(
            "Quiz is not fully evaluated; evaluate it before allocating points",
            details={"pending_attempts": pending},
        )

    winners = select_winners(attempts, percentage_threshold)

    allocation = PointsAllocation(
        quiz_id=quiz.id,
        allocated_by=allocated_by,
        percentage_threshold=percentage_threshold,
        points_per_winner=points_per_winner,
        total_attempts=len(attempts),
        winner_count=len(winners),
        total_points_distributed=len(winners) * points_per_winner,
    )
    db.add(allocation)

    records: list[WinnerRecord] = []
    for rank, attempt in enumerate(winners, start=1):
        user = attempt.user
        user.points = (user.points or 0) + points_per_winner
        attempt.points = points_per_winner
        allocation.winners.append(
            AllocationWinner(
                quiz_id=quiz.id,
                attempt_id=attempt.id,
                user_id=user.id,
                rank=rank,
                score=attempt.score,
                points_awarded=points_per_winner,
            )
        )
        logger.info(
            "Quiz %s winner #%d: user %s (score %d) +%d → %d points",
            quiz.id, rank, user.id, attempt.score, points_per_winner, user.points,
        )
        records.append(
            WinnerRecord(
                user_id=user.id,
                user_name=user.name,
                user_email=user.email,
                score=attempt.score,
                points_awarded=points_per_winner,
                new_total_points=user.points,
                rank=rank,
            )
        )

    db.flush()
    return AllocationResult(
        quiz_id=quiz.id,
        quiz_title=quiz.title,
        total_attempts=len(attempts),
        eligible_winners=len(winners),
        points_per_winner=points_per_winner,
        percentage_threshold=percentage_threshold,
        winners=records,
    )


def list_allocation_history(
    db: Session,
    quiz_id: uuid.UUID | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[AllocationWinner], int]:
    """Credited winners, newest allocation first, with the total row count."""
    q = db.query(AllocationWinner)
    if quiz_id is not None:
        q = q.filter(AllocationWinner.quiz_id == quiz_id)
    total = q.count()
    rows = (
        q.join(AllocationWinner.allocation)
        .order_by(PointsAllocation.created_at.desc(), AllocationWinner.rank)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total
