"""Public leaderboard route."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.leaderboard import LeaderboardEntry, LeaderboardResponse, Timeframe
from app.services.leaderboard import build_leaderboard

router = APIRouter()


@router.get("", response_model=LeaderboardResponse)
def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    timeframe: Timeframe = Timeframe.ALL_TIME,
    quiz_id: uuid.UUID | None = Query(None, alias="quizId"),
    db: Session = Depends(get_db),
):
    rows = build_leaderboard(db, limit=limit, timeframe=timeframe.value, quiz_id=quiz_id)
    return LeaderboardResponse(
        timeframe=timeframe,
        entries=[LeaderboardEntry.model_validate(r) for r in rows],
    )
