"""Transaction boundary and per-quiz locking for multi-step writes."""

import logging
import uuid
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, StorageError
from app.db.models import Quiz

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, context: str) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing at all.

    Any exception rolls the session back. Database errors are re-raised as
    ``StorageError`` so the caller sees the upstream-storage category.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure during %s", context)
        raise StorageError(
            f"Database rejected the {context} write; no changes were applied"
        ) from exc
    except Exception:
        db.rollback()
        raise


def lock_quiz(db: Session, quiz_id: uuid.UUID) -> Quiz:
    """Load *quiz_id* holding a row lock until the surrounding transaction ends.

    Evaluation and allocation both take this lock first, so for a given quiz
    they run one at a time. SQLite ignores ``FOR UPDATE``; its single writer
    gives the same effect in tests.
    """
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).with_for_update().first()
    if quiz is None:
        raise NotFoundError("Quiz not found", details={"quiz_id": str(quiz_id)})
    return quiz
