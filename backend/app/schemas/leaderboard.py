"""Leaderboard schemas."""

import uuid
from enum import Enum

from app.schemas.common import CamelModel


class Timeframe(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ALL_TIME = "allTime"


class LeaderboardEntry(CamelModel):
    rank: int
    user_id: uuid.UUID
    name: str | None = None
    points: int
    quizzes_taken: int
    average_score: int
    correct_answers: int
    wins: int


class LeaderboardResponse(CamelModel):
    timeframe: Timeframe
    entries: list[LeaderboardEntry]
