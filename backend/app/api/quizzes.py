"""Player quiz routes: browse, start, save answers, submit, results."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.errors import NotFoundError
from app.db.models import UNANSWERED, Quiz, QuizAttempt, QuizStatusEnum, User
from app.db.session import get_db
from app.schemas.attempt import (
    AnswerIn,
    AttemptRead,
    AttemptState,
    ResultAnswer,
    ResultResponse,
    SaveAnswerResponse,
    StartResponse,
    SubmitRequest,
    SubmitResponse,
)
from app.schemas.quiz import QuizRead, QuizSummary
from app.services import quiz_session
from app.services.unit_of_work import transaction

router = APIRouter()


def _attempt_state(attempt: QuizAttempt) -> AttemptState:
    if not attempt.is_completed:
        return AttemptState.IN_PROGRESS
    if not attempt.is_evaluated:
        return AttemptState.PENDING_EVALUATION
    return AttemptState.EVALUATED


def _own_attempt(db: Session, user: User, quiz_id: uuid.UUID) -> QuizAttempt:
    attempt = quiz_session.get_attempt(db, user.id, quiz_id)
    if attempt is None:
        raise NotFoundError(
            "You have not started this quiz", details={"quiz_id": str(quiz_id)}
        )
    return attempt


@router.get("", response_model=list[QuizSummary])
def list_quizzes(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    """Active quizzes, newest first."""
    return (
        db.query(Quiz)
        .filter(Quiz.status == QuizStatusEnum.ACTIVE)
        .order_by(Quiz.created_at.desc())
        .all()
    )


@router.get("/{quiz_id}", response_model=QuizRead)
def get_quiz(
    quiz_id: uuid.UUID,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    """Quiz with its questions; correct options are never included."""
    return quiz_session.get_playable_quiz(db, quiz_id)


@router.post("/{quiz_id}/start", response_model=StartResponse)
def start_quiz(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open the countdown for this quiz (or resume the open attempt)."""
    with transaction(db, "quiz start"):
        quiz = quiz_session.get_playable_quiz(db, quiz_id)
        attempt = quiz_session.start_attempt(db, current_user, quiz)

    return StartResponse(
        attempt=AttemptRead.model_validate(attempt),
        remaining_seconds=quiz_session.remaining_seconds(attempt),
        quiz=QuizRead.model_validate(quiz),
    )


@router.put("/{quiz_id}/answers", response_model=SaveAnswerResponse)
def save_answer(
    quiz_id: uuid.UUID,
    body: AnswerIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save a draft selection while the countdown is running."""
    with transaction(db, "answer save"):
        attempt = _own_attempt(db, current_user, quiz_id)
        saved = quiz_session.save_answer(db, attempt, body.question_id, body.selected_option)

    return SaveAnswerResponse(
        saved=saved,
        is_completed=attempt.is_completed,
        remaining_seconds=quiz_session.remaining_seconds(attempt),
    )


@router.post("/{quiz_id}/submit", response_model=SubmitResponse)
def submit_quiz(
    quiz_id: uuid.UUID,
    body: SubmitRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Submit final answers. The attempt is scored later, when an admin evaluates the quiz."""
    with transaction(db, "quiz submission"):
        quiz = quiz_session.get_playable_quiz(db, quiz_id)
        result = quiz_session.submit_attempt(
            db,
            current_user,
            quiz,
            [(a.question_id, a.selected_option) for a in body.answers],
        )

    return SubmitResponse(
        status=_attempt_state(result.attempt),
        attempt=AttemptRead.model_validate(result.attempt),
        submitted_answers=result.submitted_answers,
        total_questions=result.total_questions,
        timed_out=result.timed_out,
    )


@router.get("/{quiz_id}/results", response_model=ResultResponse)
def quiz_results(
    quiz_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's answers; correct options are revealed once the quiz is evaluated."""
    attempt = _own_attempt(db, current_user, quiz_id)
    evaluated = attempt.is_evaluated
    selected = {a.question_id: a for a in attempt.answers}

    answers: list[ResultAnswer] = []
    correct = 0
    for question in attempt.quiz.questions:
        answer = selected.get(question.id)
        is_correct = None
        if evaluated:
            is_correct = bool(answer and answer.is_correct)
            correct += is_correct
        answers.append(
            ResultAnswer(
                question_id=question.id,
                question_text=question.text,
                options=question.options,
                selected_option=answer.selected_option if answer else UNANSWERED,
                correct_option=question.correct_option if evaluated else None,
                is_correct=is_correct,
            )
        )

    return ResultResponse(
        status=_attempt_state(attempt),
        attempt=AttemptRead.model_validate(attempt),
        correct_answers=correct if evaluated else None,
        total_questions=len(answers),
        answers=answers,
    )
