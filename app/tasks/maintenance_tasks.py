"""
Periodic housekeeping tasks run by Celery Beat.
"""

import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name="cleanup_expired_registration_verifications")
def cleanup_expired_registration_verifications_task():
    """
    Delete stale pre-account verification records and clear expired reset tokens.

    Scheduled in app.core.celery_app beat_schedule (hourly).
    """
    from app.core.database import SessionLocal
    from app.core.verification import cleanup_expired_registration_verifications
    from app.services.password_reset import clear_expired_reset_tokens

    db = SessionLocal()
    try:
        deleted_count = cleanup_expired_registration_verifications(db)
        cleared_tokens = clear_expired_reset_tokens(db)
        logger.info(
            f"Cleaned up {deleted_count} registration verifications and {cleared_tokens} expired reset tokens"
        )
        return {"status": "success", "deleted_count": deleted_count, "cleared_reset_tokens": cleared_tokens}
    except Exception as e:
        logger.error(f"Error during verification cleanup: {str(e)}")
        raise
    finally:
        db.close()


@shared_task(name="prune_expired_sessions")
def prune_expired_sessions_task():
    """
    Delete expired rows from user_sessions.

    The API process prunes on its own timer as well; this covers sessions
    left behind while no API process is running.
    """
    from app.core.database import SessionLocal
    from app.core.sessions import DatabaseSessionStore

    removed = DatabaseSessionStore(SessionLocal).prune()
    logger.info(f"Pruned {removed} expired sessions")
    return {"status": "success", "removed": removed}
