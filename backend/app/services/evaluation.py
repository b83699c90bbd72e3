"""Quiz evaluation: assign correct options and re-score every submitted attempt.

The admin supplies one correct option index per question. Evaluation then

  1. stores ``correct_option`` / ``has_correct_answer`` on each question,
  2. rewrites ``is_correct`` on every answer to those questions,
  3. recomputes each completed attempt's percentage score and marks it
     evaluated.

All input checks run before the first write. The caller owns the transaction
(see ``app.services.unit_of_work``); nothing here commits.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Mapping

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InvalidRequestError, NotFoundError
from app.db.models import Answer, PointsAllocation, Question, Quiz, QuizAttempt
from app.services.options import is_valid_option
from app.services.unit_of_work import lock_quiz

logger = logging.getLogger(__name__)


@dataclass
class AttemptScore:
    attempt_id: uuid.UUID
    user_id: uuid.UUID
    user_email: str
    correct_answers: int
    total_questions: int
    score: int


@dataclass
class EvaluationResult:
    quiz_id: uuid.UUID
    questions_updated: int
    evaluated_attempts: int
    results: list[AttemptScore] = field(default_factory=list)


@dataclass
class EvaluationStatus:
    quiz: Quiz
    questions: list[Question]
    total_attempts: int
    evaluated_attempts: int
    pending_attempts: int
    in_progress_attempts: int

    @property
    def questions_with_answers(self) -> int:
        return sum(1 for q in self.questions if q.has_correct_answer)

    @property
    def is_fully_evaluated(self) -> bool:
        return (
            self.pending_attempts == 0
            and bool(self.questions)
            and all(q.has_correct_answer for q in self.questions)
        )


def score_percentage(correct: int, total: int) -> int:
    """Integer percentage of *correct* over *total*, rounded half up.

    Works on the exact fraction so 1/8 → 13 and 1/3 → 33 on every platform.
    """
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def _coerce_answer_key(key: uuid.UUID | str) -> uuid.UUID | None:
    if isinstance(key, uuid.UUID):
        return key
    try:
        return uuid.UUID(str(key))
    except ValueError:
        return None


def _validate_correct_answers(
    questions: list[Question],
    correct_answers: Mapping[uuid.UUID | str, int],
) -> dict[uuid.UUID, int]:
    """Check coverage and index ranges; return the mapping keyed by UUID."""
    by_id = {q.id: q for q in questions}

    resolved: dict[uuid.UUID, int] = {}
    unknown: list[str] = []
    duplicates: list[str] = []
    for raw_key, option in correct_answers.items():
        qid = _coerce_answer_key(raw_key)
        if qid is None or qid not in by_id:
            unknown.append(str(raw_key))
            continue
        # "ABC…" and "abc…" name the same question
        if qid in resolved and resolved[qid] != option:
            duplicates.append(str(raw_key))
            continue
        resolved[qid] = option

    if unknown:
        raise InvalidRequestError(
            "Correct answers reference questions that are not part of this quiz",
            details={"unknown_questions": unknown},
        )
    if duplicates:
        raise InvalidRequestError(
            "Correct answers give conflicting options for the same question",
            details={"duplicate_questions": duplicates},
        )

    missing = [str(qid) for qid in by_id if qid not in resolved]
    if missing:
        raise InvalidRequestError(
            "Missing correct answers for some questions",
            details={"missing_questions": missing},
        )

    out_of_range = {
        str(qid): option
        for qid, option in resolved.items()
        if not is_valid_option(by_id[qid].options, option)
    }
    if out_of_range:
        raise InvalidRequestError(
            "Correct option index is outside the question's options",
            details={"invalid_options": out_of_range},
        )
    return resolved


def evaluate_quiz(
    db: Session,
    quiz_id: uuid.UUID,
    correct_answers: Mapping[uuid.UUID | str, int],
) -> EvaluationResult:
    """Assign correct options for *quiz_id* and re-score its completed attempts.

    Re-running with the same input yields the same question, answer and
    attempt state.

    Raises:
        NotFoundError: the quiz does not exist.
        InvalidRequestError: ``correct_answers`` does not cover exactly the
            quiz's questions, or an index is out of range. No rows are
            touched in that case.
        ConflictError: points were already allocated for the quiz.
    """
    quiz = lock_quiz(db, quiz_id)
    allocation = (
        db.query(PointsAllocation).filter(PointsAllocation.quiz_id == quiz.id).first()
    )
    if allocation is not None:
        raise ConflictError(
            "Points were already allocated for this quiz; its scores are final",
            details={"allocation_id": str(allocation.id)},
        )

    questions = list(quiz.questions)
    if not questions:
        raise InvalidRequestError("Quiz has no questions to evaluate")

    resolved = _validate_correct_answers(questions, correct_answers)
    total_questions = len(questions)

    attempts = (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz.id, QuizAttempt.is_completed.is_(True))
        .order_by(QuizAttempt.completed_at)
        .all()
    )
    logger.info(
        "Evaluating quiz %s: %d questions, %d submitted attempts",
        quiz.id, total_questions, len(attempts),
    )

    # 1. Correct option per question
    for question in questions:
        question.correct_option = resolved[question.id]
        question.has_correct_answer = True

    # 2. Full rewrite of answer correctness, one question at a time
    correct_by_attempt: Counter[uuid.UUID] = Counter()
    for question in questions:
        correct_option = resolved[question.id]
        answers = db.query(Answer).filter(Answer.question_id == question.id).all()
        for answer in answers:
            answer.is_correct = answer.selected_option == correct_option
            if answer.is_correct:
                correct_by_attempt[answer.attempt_id] += 1

    # 3. Re-score attempts; unanswered questions still count in the denominator
    results: list[AttemptScore] = []
    for attempt in attempts:
        correct = correct_by_attempt[attempt.id]
        attempt.score = score_percentage(correct, total_questions)
        attempt.is_evaluated = True
        logger.debug(
            "Attempt %s (user %s) scored %d/%d → %d%%",
            attempt.id, attempt.user_id, correct, total_questions, attempt.score,
        )
        results.append(
            AttemptScore(
                attempt_id=attempt.id,
                user_id=attempt.user_id,
                user_email=attempt.user.email,
                correct_answers=correct,
                total_questions=total_questions,
                score=attempt.score,
            )
        )

    db.flush()
    logger.info("Evaluated %d attempts for quiz %s", len(results), quiz.id)
    return EvaluationResult(
        quiz_id=quiz.id,
        questions_updated=len(questions),
        evaluated_attempts=len(results),
        results=results,
    )


def get_evaluation_status(db: Session, quiz_id: uuid.UUID) -> EvaluationStatus:
    """Summarise how far evaluation of *quiz_id* has progressed."""
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if quiz is None:
        raise NotFoundError("Quiz not found", details={"quiz_id": str(quiz_id)})

    attempts = db.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz.id).all()
    completed = [a for a in attempts if a.is_completed]
    evaluated = sum(1 for a in completed if a.is_evaluated)

    return EvaluationStatus(
        quiz=quiz,
        questions=list(quiz.questions),
        total_attempts=len(completed),
        evaluated_attempts=evaluated,
        pending_attempts=len(completed) - evaluated,
        in_progress_attempts=len(attempts) - len(completed),
    )
