"""Admin quiz authoring: quizzes, questions and the derived question count."""

import logging
import uuid
from typing import Any, Iterable

from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError
from app.db.models import Question, Quiz, QuizAttempt, QuizStatusEnum
from app.services.options import normalize_options

logger = logging.getLogger(__name__)


def get_quiz(db: Session, quiz_id: uuid.UUID) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if quiz is None:
        raise NotFoundError("Quiz not found", details={"quiz_id": str(quiz_id)})
    return quiz


def get_question(db: Session, question_id: uuid.UUID) -> Question:
    question = db.query(Question).filter(Question.id == question_id).first()
    if question is None:
        raise NotFoundError("Question not found", details={"question_id": str(question_id)})
    return question


def _has_attempts(db: Session, quiz_id: uuid.UUID) -> bool:
    return db.query(QuizAttempt.id).filter(QuizAttempt.quiz_id == quiz_id).first() is not None


def _sync_question_count(quiz: Quiz) -> None:
    quiz.question_count = len(quiz.questions)


def add_question(
    db: Session,
    quiz: Quiz,
    text: str,
    options: Any,
    position: int | None = None,
) -> Question:
    """Append a question; ``options`` is normalised to ``list[str]`` first."""
    if _has_attempts(db, quiz.id):
        raise ConflictError("Questions cannot be added once players have attempted the quiz")
    question = Question(
        text=text.strip(),
        position=position if position is not None else len(quiz.questions),
    )
    question.options = normalize_options(options)
    quiz.questions.append(question)
    _sync_question_count(quiz)
    db.flush()
    return question


def create_quiz(
    db: Session,
    title: str,
    questions: Iterable[dict] = (),
    **fields: Any,
) -> Quiz:
    quiz = Quiz(title=title.strip(), **fields)
    db.add(quiz)
    db.flush()
    for index, q in enumerate(questions):
        position = q.get("position")
        add_question(db, quiz, q["text"], q["options"], index if position is None else position)
    logger.info("Created quiz %s with %d questions", quiz.id, quiz.question_count)
    return quiz


def update_quiz(db: Session, quiz: Quiz, **fields: Any) -> Quiz:
    for name, value in fields.items():
        setattr(quiz, name, value)
    db.flush()
    return quiz


def delete_quiz(db: Session, quiz: Quiz) -> None:
    """Delete a quiz nobody has played; played quizzes can only be deactivated."""
    if _has_attempts(db, quiz.id):
        raise ConflictError(
            "Quiz has attempts; set its status to inactive instead",
            details={"status": QuizStatusEnum.INACTIVE.value},
        )
    db.delete(quiz)
    db.flush()
    logger.info("Deleted quiz %s", quiz.id)


def update_question(
    db: Session,
    question: Question,
    text: str | None = None,
    options: Any = None,
    position: int | None = None,
) -> Question:
    """Edit a question. New options clear any correct option already assigned."""
    if text is not None:
        question.text = text.strip()
    if position is not None:
        question.position = position
    if options is not None:
        normalized = normalize_options(options)
        if normalized != question.options:
            if _has_attempts(db, question.quiz_id):
                raise ConflictError(
                    "Options cannot change once players have answered this question"
                )
            question.options = normalized
            question.correct_option = None
            question.has_correct_answer = False
    db.flush()
    return question


def delete_question(db: Session, question: Question) -> None:
    quiz = question.quiz
    if _has_attempts(db, quiz.id):
        raise ConflictError("Questions cannot be removed once players have attempted the quiz")
    quiz.questions.remove(question)
    _sync_question_count(quiz)
    db.flush()
