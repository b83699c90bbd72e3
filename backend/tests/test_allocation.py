"""Tests for points allocation (winner selection, ledger, admin endpoints)."""

import uuid
from datetime import timedelta

import pytest

from app.core.errors import ConflictError, InvalidRequestError, NotFoundError
from app.db.models import AllocationWinner, PointsAllocation, QuizAttempt, User
from app.services.allocation import allocate_points, select_winners, winner_count
from app.services.evaluation import evaluate_quiz
from factories import T0, break_flush, make_attempt, make_quiz, make_user


def _evaluated_quiz(db, selections_per_player, n_questions=10, gap=timedelta(minutes=1)):
    """Quiz whose key is all zeros; each player's score is set by how many zeros they pick."""
    quiz = make_quiz(db, n_questions=n_questions)
    players = []
    for i, selections in enumerate(selections_per_player):
        user = make_user(db, email=f"p{i}@ex.com", name=f"Player {i}")
        make_attempt(db, user, quiz, selections, completed_at=T0 + gap * i)
        players.append(user)
    evaluate_quiz(db, quiz.id, {str(q.id): 0 for q in quiz.questions})
    db.commit()
    return quiz, players


def _hits(n, total=10):
    return [0] * n + [1] * (total - n)


class TestWinnerCount:
    @pytest.mark.parametrize(
        "total,threshold,expected",
        [
            (10, 10, 1),
            (10, 100, 10),
            (1, 1, 1),
            (1, 100, 1),
            (3, 50, 2),
            (7, 30, 3),
            (200, 1, 2),
            (0, 50, 1),
            (10, 10.5, 2),
        ],
    )
    def test_formula(self, total, threshold, expected):
        assert winner_count(total, threshold) == expected


class TestSelectWinners:
    def test_ties_go_to_earlier_submission(self, db):
        quiz, players = _evaluated_quiz(db, [_hits(5), _hits(8), _hits(8), _hits(2)])
        attempts = quiz.attempts

        winners = select_winners(attempts, 50)

        assert [a.user_id for a in winners] == [players[1].id, players[2].id]

    def test_equal_submission_time_falls_back_to_start_time(self, db):
        quiz = make_quiz(db, n_questions=1)
        late_starter = make_user(db)
        early_starter = make_user(db)
        make_attempt(db, late_starter, quiz, [0], completed_at=T0, started_at=T0 - timedelta(minutes=1))
        make_attempt(db, early_starter, quiz, [0], completed_at=T0, started_at=T0 - timedelta(minutes=9))
        evaluate_quiz(db, quiz.id, {str(quiz.questions[0].id): 0})

        winners = select_winners(quiz.attempts, 1)

        assert [a.user_id for a in winners] == [early_starter.id]


class TestAllocatePoints:
    def test_single_top_scorer_credited(self, db):
        """Ten distinct scores at 10% pick exactly the best one."""
        quiz, players = _evaluated_quiz(db, [_hits(n) for n in range(10)])

        result = allocate_points(db, quiz.id, percentage_threshold=10, points_per_winner=5)
        db.commit()

        assert result.eligible_winners == 1
        assert result.total_points_distributed == 5
        assert result.winners[0].user_id == players[9].id
        assert result.winners[0].score == 90
        assert result.winners[0].new_total_points == 5
        balances = {u.id: u.points for u in db.query(User).all()}
        assert balances[players[9].id] == 5
        assert sum(balances.values()) == 5

    def test_threshold_100_credits_everyone(self, db):
        quiz, players = _evaluated_quiz(db, [_hits(3), _hits(7), _hits(5)])

        result = allocate_points(db, quiz.id, percentage_threshold=100, points_per_winner=2)

        assert result.eligible_winners == 3
        assert [w.score for w in result.winners] == [70, 50, 30]
        assert [w.rank for w in result.winners] == [1, 2, 3]
        assert all(u.points == 2 for u in players)

    def test_single_attempt_always_wins(self, db):
        quiz, (player,) = _evaluated_quiz(db, [_hits(0)])

        result = allocate_points(db, quiz.id, percentage_threshold=1, points_per_winner=7)

        assert result.eligible_winners == 1
        assert player.points == 7

    def test_points_accumulate_on_existing_balance(self, db):
        quiz, (player,) = _evaluated_quiz(db, [_hits(4)])
        player.points = 40
        db.commit()

        result = allocate_points(db, quiz.id, percentage_threshold=50, points_per_winner=10)

        assert result.winners[0].new_total_points == 50
        assert player.points == 50

    def test_writes_ledger_and_attempt_points(self, db):
        quiz, players = _evaluated_quiz(db, [_hits(9), _hits(1)])
        admin_id = make_user(db).id

        allocate_points(db, quiz.id, 50, 3, allocated_by=admin_id)
        db.commit()

        ledger = db.query(PointsAllocation).filter_by(quiz_id=quiz.id).one()
        assert (ledger.winner_count, ledger.total_points_distributed) == (1, 3)
        assert ledger.allocated_by == admin_id
        winner = db.query(AllocationWinner).one()
        assert winner.user_id == players[0].id
        assert {a.user_id: a.points for a in quiz.attempts} == {players[0].id: 3, players[1].id: 0}

    def test_repeat_allocation_rejected(self, db):
        quiz, players = _evaluated_quiz(db, [_hits(9), _hits(1)])
        allocate_points(db, quiz.id, 50, 5)
        db.commit()

        with pytest.raises(ConflictError):
            allocate_points(db, quiz.id, 50, 5)
        db.rollback()

        assert players[0].points == 5
        assert db.query(AllocationWinner).count() == 1

    def test_unevaluated_attempt_blocks_allocation(self, db):
        quiz, players = _evaluated_quiz(db, [_hits(9), _hits(1)])
        late = make_user(db)
        make_attempt(db, late, quiz, _hits(10))

        with pytest.raises(InvalidRequestError) as exc:
            allocate_points(db, quiz.id, 100, 5)

        assert "evaluated" in exc.value.message
        assert [u.points for u in (*players, late)] == [0, 0, 0]
        assert db.query(PointsAllocation).count() == 0

    def test_open_attempts_do_not_block(self, db):
        quiz, (player,) = _evaluated_quiz(db, [_hits(6)])
        make_attempt(db, make_user(db), quiz, [0], completed_at=None)

        result = allocate_points(db, quiz.id, 100, 1)

        assert result.total_attempts == 1
        assert player.points == 1

    def test_no_attempts(self, db):
        quiz = make_quiz(db)
        with pytest.raises(InvalidRequestError):
            allocate_points(db, quiz.id, 10, 5)

    @pytest.mark.parametrize(
        "threshold,points", [(0, 5), (101, 5), (-5, 5), (10, 0), (10, -1), (10, 1001)]
    )
    def test_bad_inputs(self, db, threshold, points):
        quiz, _ = _evaluated_quiz(db, [_hits(5)])
        with pytest.raises(InvalidRequestError):
            allocate_points(db, quiz.id, threshold, points)

    def test_unknown_quiz(self, db):
        with pytest.raises(NotFoundError):
            allocate_points(db, uuid.uuid4(), 10, 5)


class TestAllocationEndpoints:
    def _allocate(self, client, headers, quiz_id, points=5, threshold=50):
        return client.post(
            "/api/admin/points-allocation",
            json={"quizId": str(quiz_id), "pointsPerWinner": points, "percentageThreshold": threshold},
            headers=headers,
        )

    def test_allocate(self, client, db, admin_headers):
        quiz, players = _evaluated_quiz(db, [_hits(9), _hits(4), _hits(6)])

        response = self._allocate(client, admin_headers, quiz.id, points=5, threshold=50)

        assert response.status_code == 200
        data = response.json()
        assert data["allocation"] == {
            "totalAttempts": 3,
            "eligibleWinners": 2,
            "pointsPerWinner": 5,
            "totalPointsDistributed": 10,
            "percentageThreshold": 50.0,
        }
        assert [w["userEmail"] for w in data["winners"]] == ["p0@ex.com", "p2@ex.com"]
        assert data["winners"][0]["pointsAwarded"] == 5
        assert data["winners"][0]["userName"] == "Player 0"
        assert data["quiz"]["id"] == str(quiz.id)

    def test_repeat_returns_409_without_extra_points(self, client, db, admin_headers):
        quiz, players = _evaluated_quiz(db, [_hits(9), _hits(4)])

        assert self._allocate(client, admin_headers, quiz.id).status_code == 200
        second = self._allocate(client, admin_headers, quiz.id)

        assert second.status_code == 409
        assert second.json()["error_code"] == "conflict"
        db.expire_all()
        assert [u.points for u in players] == [5, 0]

    def test_unevaluated_returns_400(self, client, db, admin_headers):
        quiz = make_quiz(db, n_questions=2)
        make_attempt(db, make_user(db), quiz, [0, 0])

        response = self._allocate(client, admin_headers, quiz.id)

        assert response.status_code == 400
        assert response.json()["message"]

    def test_threshold_out_of_range_returns_400(self, client, db, admin_headers):
        quiz, _ = _evaluated_quiz(db, [_hits(3)])
        response = self._allocate(client, admin_headers, quiz.id, threshold=150)
        assert response.status_code == 400
        assert response.json()["details"] == {"percentage_threshold": 150.0}

    def test_history(self, client, db, admin_headers):
        quiz, players = _evaluated_quiz(db, [_hits(9), _hits(4)])
        self._allocate(client, admin_headers, quiz.id, threshold=100)

        response = client.get(
            "/api/admin/points-allocation",
            params={"quizId": str(quiz.id), "page": 1, "limit": 1},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["pagination"] == {"page": 1, "limit": 1, "total": 2, "totalPages": 2}
        assert data["items"][0]["rank"] == 1
        assert data["items"][0]["user"]["email"] == "p0@ex.com"
        assert data["items"][0]["quiz"]["title"] == quiz.title

    def test_points_above_cap_returns_400(self, client, db, admin_headers):
        quiz, (player,) = _evaluated_quiz(db, [_hits(7)])
        response = self._allocate(client, admin_headers, quiz.id, points=1001)
        assert response.status_code == 400
        assert response.json()["details"] == {"points_per_winner": 1001}
        db.expire_all()
        assert player.points == 0

    def test_storage_failure_rolls_back_every_write(self, client, db, admin_headers, monkeypatch):
        quiz, players = _evaluated_quiz(db, [_hits(9), _hits(4)])
        break_flush(monkeypatch)

        response = self._allocate(client, admin_headers, quiz.id, threshold=100)

        assert response.status_code == 503
        assert response.json()["error_code"] == "storage_error"
        monkeypatch.undo()
        db.expire_all()
        assert [u.points for u in players] == [0, 0]
        assert db.query(PointsAllocation).count() == 0
        assert db.query(AllocationWinner).count() == 0
        assert db.query(QuizAttempt).filter(QuizAttempt.points > 0).count() == 0

        retry = self._allocate(client, admin_headers, quiz.id, threshold=100)
        assert retry.status_code == 200
        db.expire_all()
        assert [u.points for u in players] == [5, 5]
