"""Leaderboard aggregation over users, attempts and allocation wins."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.db.models import AllocationWinner, Answer, QuizAttempt, User

TIMEFRAME_DAYS = {"weekly": 7, "monthly": 30, "allTime": None}


@dataclass
class LeaderboardRow:
    rank: int
    user_id: uuid.UUID
    name: str | None
    points: int
    quizzes_taken: int
    average_score: int
    correct_answers: int
    wins: int


def _since(timeframe: str, now: datetime | None = None) -> datetime | None:
    days = TIMEFRAME_DAYS.get(timeframe)
    if days is None:
        return None
    return (now or datetime.now(timezone.utc)) - timedelta(days=days)


def build_leaderboard(
    db: Session,
    limit: int = 10,
    timeframe: str = "allTime",
    quiz_id: uuid.UUID | None = None,
) -> list[LeaderboardRow]:
    """Users with at least one completed attempt in the window, best first.

    Ordered by points balance, then average evaluated score, then name.
    """
    since = _since(timeframe)

    attempt_q = db.query(
        QuizAttempt.user_id,
        func.count(QuizAttempt.id).label("taken"),
        func.avg(case((QuizAttempt.is_evaluated.is_(True), QuizAttempt.score))).label(
            "avg_score"
        ),
    ).filter(QuizAttempt.is_completed.is_(True))
    if since is not None:
        attempt_q = attempt_q.filter(QuizAttempt.completed_at >= since)
    if quiz_id is not None:
        attempt_q = attempt_q.filter(QuizAttempt.quiz_id == quiz_id)
    stats = {row.user_id: row for row in attempt_q.group_by(QuizAttempt.user_id).all()}
    if not stats:
        return []
    user_ids = list(stats)

    correct_q = (
        db.query(Answer.user_id, func.count(Answer.id))
        .filter(Answer.is_correct.is_(True), Answer.user_id.in_(user_ids))
    )
    wins_q = db.query(AllocationWinner.user_id, func.count(AllocationWinner.id)).filter(
        AllocationWinner.user_id.in_(user_ids)
    )
    if since is not None:
        correct_q = correct_q.filter(Answer.created_at >= since)
        wins_q = wins_q.filter(AllocationWinner.created_at >= since)
    if quiz_id is not None:
        correct_q = correct_q.join(QuizAttempt, Answer.attempt_id == QuizAttempt.id).filter(
            QuizAttempt.quiz_id == quiz_id
        )
        wins_q = wins_q.filter(AllocationWinner.quiz_id == quiz_id)
    correct = dict(correct_q.group_by(Answer.user_id).all())
    wins = dict(wins_q.group_by(AllocationWinner.user_id).all())

    users = db.query(User).filter(User.id.in_(user_ids), User.is_active.is_(True)).all()

    def avg(user: User) -> int:
        value = stats[user.id].avg_score
        return int(round(float(value))) if value is not None else 0

    users.sort(key=lambda u: (-(u.points or 0), -avg(u), u.name or "", str(u.id)))

    return [
        LeaderboardRow(
            rank=rank,
            user_id=user.id,
            name=user.name,
            points=user.points or 0,
            quizzes_taken=stats[user.id].taken,
            average_score=avg(user),
            correct_answers=correct.get(user.id, 0),
            wins=wins.get(user.id, 0),
        )
        for rank, user in enumerate(users[:limit], start=1)
    ]
