"""Background tasks executed by Celery workers."""

import logging

from app.celery_app import celery_app
from app.db.session import get_session_factory
from app.services.quiz_session import finalize_expired
from app.services.unit_of_work import transaction

logger = logging.getLogger(__name__)


@celery_app.task(name="finalize_expired_attempts")
def finalize_expired_attempts() -> dict:
    """Close quiz attempts whose countdown ran out without a submit."""
    db = get_session_factory()()
    try:
        with transaction(db, "expired attempt sweep"):
            closed = finalize_expired(db)
        return {"success": True, "closed": closed}
    finally:
        db.close()
