"""Timed quiz attempts: start, save draft answers, submit, forced submission.

An attempt gets a deadline of ``started_at + quiz.duration_minutes``. Answers
arriving after ``deadline + QUIZ_SUBMIT_GRACE_SECONDS`` are discarded and the
attempt is closed with whatever was saved before the deadline; this is the
server-side counterpart of the client countdown forcing a submit at zero.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable

from sqlalchemy.orm import Session

from app.config import settings
from app.core.errors import ConflictError, InvalidRequestError, NotFoundError
from app.db.models import (
    UNANSWERED,
    Answer,
    Quiz,
    QuizAttempt,
    QuizStatusEnum,
    User,
    as_utc,
)
from app.services.options import is_valid_option
from app.services.wallet import charge_quiz_access

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    attempt: QuizAttempt
    submitted_answers: int
    total_questions: int
    timed_out: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_attempt(db: Session, user_id: uuid.UUID, quiz_id: uuid.UUID) -> QuizAttempt | None:
    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.user_id == user_id, QuizAttempt.quiz_id == quiz_id)
        .first()
    )


def get_playable_quiz(db: Session, quiz_id: uuid.UUID) -> Quiz:
    """Return an active quiz that has questions, or raise."""
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if quiz is None or quiz.status != QuizStatusEnum.ACTIVE:
        raise NotFoundError("Quiz not found or inactive", details={"quiz_id": str(quiz_id)})
    if not quiz.questions:
        raise InvalidRequestError("Quiz has no questions yet")
    return quiz


def grace_deadline(attempt: QuizAttempt) -> datetime | None:
    deadline = as_utc(attempt.deadline_at)
    if deadline is None:
        return None
    return deadline + timedelta(seconds=settings.QUIZ_SUBMIT_GRACE_SECONDS)


def is_expired(attempt: QuizAttempt, now: datetime | None = None) -> bool:
    limit = grace_deadline(attempt)
    return limit is not None and (now or _utcnow()) > limit


def remaining_seconds(attempt: QuizAttempt, now: datetime | None = None) -> int:
    """Whole seconds left on the countdown, never negative."""
    deadline = as_utc(attempt.deadline_at)
    if deadline is None or attempt.is_completed:
        return 0
    left = (deadline - (now or _utcnow())).total_seconds()
    return max(0, int(left))


def _new_attempt(db: Session, user: User, quiz: Quiz, now: datetime) -> QuizAttempt:
    if quiz.access_price and quiz.access_price > 0:
        charge_quiz_access(db, user, quiz)
    attempt = QuizAttempt(
        user_id=user.id,
        quiz_id=quiz.id,
        started_at=now,
        deadline_at=now + timedelta(minutes=quiz.duration_minutes),
    )
    db.add(attempt)
    db.flush()
    return attempt


def start_attempt(
    db: Session, user: User, quiz: Quiz, now: datetime | None = None
) -> QuizAttempt:
    """Open (or resume) the user's attempt at *quiz* and start its countdown."""
    now = now or _utcnow()
    attempt = get_attempt(db, user.id, quiz.id)
    if attempt is not None:
        if attempt.is_completed:
            raise ConflictError(
                "You have already submitted this quiz",
                details={"attempt_id": str(attempt.id)},
            )
        return attempt

    attempt = _new_attempt(db, user, quiz, now)
    logger.info("User %s started quiz %s (attempt %s)", user.id, quiz.id, attempt.id)
    return attempt


def _check_selection(quiz: Quiz, question_id: uuid.UUID, selected_option: int) -> None:
    question = next((q for q in quiz.questions if q.id == question_id), None)
    if question is None:
        raise InvalidRequestError(
            "Question is not part of this quiz",
            details={"question_id": str(question_id)},
        )
    if selected_option != UNANSWERED and not is_valid_option(question.options, selected_option):
        raise InvalidRequestError(
            "Selected option is outside the question's options",
            details={"question_id": str(question_id), "selected_option": selected_option},
        )


def _upsert_answer(attempt: QuizAttempt, question_id: uuid.UUID, selected_option: int) -> None:
    for answer in attempt.answers:
        if answer.question_id == question_id:
            answer.selected_option = selected_option
            answer.is_correct = None
            return
    attempt.answers.append(
        Answer(
            user_id=attempt.user_id,
            question_id=question_id,
            selected_option=selected_option,
        )
    )


def _finalize(attempt: QuizAttempt, now: datetime, timed_out: bool) -> None:
    attempt.is_completed = True
    attempt.is_evaluated = False
    attempt.timed_out = timed_out
    attempt.completed_at = as_utc(attempt.deadline_at) if timed_out else now


def save_answer(
    db: Session,
    attempt: QuizAttempt,
    question_id: uuid.UUID,
    selected_option: int,
    now: datetime | None = None,
) -> bool:
    """Record a draft selection. Returns False when time was already up.

    A late save closes the attempt instead of recording the selection.
    """
    now = now or _utcnow()
    if attempt.is_completed:
        raise ConflictError("This attempt has already been submitted")
    _check_selection(attempt.quiz, question_id, selected_option)

    if is_expired(attempt, now):
        _finalize(attempt, now, timed_out=True)
        logger.info("Attempt %s timed out while saving an answer", attempt.id)
        db.flush()
        return False

    _upsert_answer(attempt, question_id, selected_option)
    db.flush()
    return True


def submit_attempt(
    db: Session,
    user: User,
    quiz: Quiz,
    answers: Iterable[tuple[uuid.UUID, int]],
    now: datetime | None = None,
) -> SubmissionResult:
    """Submit the final selections for *quiz*; the attempt awaits evaluation.

    Raises:
        InvalidRequestError: a question id outside the quiz or a bad index.
        ConflictError: the quiz was already submitted by this user.
    """
    now = now or _utcnow()
    answers = list(answers)
    for question_id, selected_option in answers:
        _check_selection(quiz, question_id, selected_option)

    attempt = get_attempt(db, user.id, quiz.id)
    if attempt is None:
        attempt = _new_attempt(db, user, quiz, now)
    elif attempt.is_completed:
        raise ConflictError(
            "You have already submitted this quiz",
            details={"attempt_id": str(attempt.id)},
        )

    timed_out = is_expired(attempt, now)
    if timed_out:
        logger.warning(
            "Late submission for attempt %s discarded (deadline %s)",
            attempt.id, attempt.deadline_at,
        )
    else:
        for question_id, selected_option in answers:
            _upsert_answer(attempt, question_id, selected_option)

    _finalize(attempt, now, timed_out=timed_out)
    db.flush()
    logger.info(
        "User %s submitted quiz %s (%d answers, timed_out=%s)",
        user.id, quiz.id, len(attempt.answers), timed_out,
    )
    return SubmissionResult(
        attempt=attempt,
        submitted_answers=len(attempt.answers),
        total_questions=len(quiz.questions),
        timed_out=timed_out,
    )


def finalize_expired(db: Session, now: datetime | None = None) -> int:
    """Force-submit every open attempt whose deadline (plus grace) has passed."""
    now = now or _utcnow()
    open_attempts = (
        db.query(QuizAttempt)
        .filter(QuizAttempt.is_completed.is_(False), QuizAttempt.deadline_at.isnot(None))
        .all()
    )
    closed = 0
    for attempt in open_attempts:
        if is_expired(attempt, now):
            _finalize(attempt, now, timed_out=True)
            closed += 1
    db.flush()
    if closed:
        logger.info("Force-submitted %d expired attempts", closed)
    return closed
