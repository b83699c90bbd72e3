"""Tests for the leaderboard."""

from datetime import datetime, timedelta, timezone

from app.services.allocation import allocate_points
from app.services.evaluation import evaluate_quiz
from app.services.leaderboard import build_leaderboard
from factories import make_attempt, make_quiz, make_user


def _played_quiz(db, players_and_picks, completed_at=None):
    quiz = make_quiz(db, n_questions=2)
    when = completed_at or datetime.now(timezone.utc) - timedelta(hours=1)
    for user, picks in players_and_picks:
        make_attempt(db, user, quiz, picks, completed_at=when)
    evaluate_quiz(db, quiz.id, {str(q.id): 0 for q in quiz.questions})
    db.commit()
    return quiz


def test_ranked_by_points_then_average(db):
    ace, mid, low = make_user(db, name="Ace"), make_user(db, name="Mid"), make_user(db, name="Low")
    quiz = _played_quiz(db, [(ace, [0, 0]), (mid, [0, 1]), (low, [1, 1])])
    allocate_points(db, quiz.id, 1, 10)
    db.commit()

    rows = build_leaderboard(db)

    assert [r.name for r in rows] == ["Ace", "Mid", "Low"]
    assert rows[0].points == 10 and rows[0].wins == 1
    assert [r.average_score for r in rows] == [100, 50, 0]
    assert [r.correct_answers for r in rows] == [2, 1, 0]
    assert [r.rank for r in rows] == [1, 2, 3]


def test_weekly_window_excludes_old_attempts(db):
    old, recent = make_user(db, name="Old"), make_user(db, name="Recent")
    _played_quiz(db, [(old, [0, 0])], completed_at=datetime.now(timezone.utc) - timedelta(days=20))
    _played_quiz(db, [(recent, [0, 1])])

    assert [r.name for r in build_leaderboard(db, timeframe="weekly")] == ["Recent"]
    assert {r.name for r in build_leaderboard(db, timeframe="monthly")} == {"Old", "Recent"}


def test_filter_by_quiz_and_limit(client, db):
    a, b = make_user(db, name="A"), make_user(db, name="B")
    first = _played_quiz(db, [(a, [0, 0]), (b, [0, 1])])
    _played_quiz(db, [(b, [0, 0])])

    response = client.get("/api/leaderboard", params={"quizId": str(first.id), "limit": 1})

    assert response.status_code == 200
    entries = response.json()["entries"]
    assert [e["name"] for e in entries] == ["A"]
    assert entries[0]["quizzesTaken"] == 1


def test_empty(client):
    response = client.get("/api/leaderboard", params={"timeframe": "weekly"})
    assert response.json() == {"timeframe": "weekly", "entries": []}
