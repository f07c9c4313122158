"""
Celery application configuration.

This module configures Celery to use Redis as both the message broker and result backend.
The worker process will use this configuration to connect to Redis and process tasks.
"""

from celery import Celery
from celery.schedules import crontab
from app.core.config import settings

# Create Celery instance
celery_app = Celery(
    "portal_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

# Configure Celery
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,
    task_time_limit=120,  # Emails should never take this long
    task_soft_time_limit=90,

    # Result backend
    result_expires=3600,  # Results expire after 1 hour

    # Worker behavior
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=200,

    beat_schedule={
        'cleanup-registration-verifications': {
            'task': 'cleanup_expired_registration_verifications',
            'schedule': crontab(minute=0),  # Hourly
        },
        'prune-expired-sessions': {
            'task': 'prune_expired_sessions',
            'schedule': crontab(minute=30),
        },
    },
)

# Auto-discover tasks from app.tasks module
celery_app.autodiscover_tasks(['app'])
