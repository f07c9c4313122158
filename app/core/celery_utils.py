"""
Celery utility functions for reliable task queueing.

Email dispatch from request handlers goes through queue_task_safely(): a broker
outage is logged and reported as False instead of failing a request whose
state change has already been committed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Tuple
from celery import Task
from kombu import Connection

logger = logging.getLogger(__name__)

# Thread pool for queueing tasks outside the request's own thread
_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="celery_queue")

QUEUE_TIMEOUT_SECONDS = 5


def _queue_task_sync(task: Task, args: tuple, kwargs: dict) -> Tuple[bool, str, str]:
    """
    Queue a task synchronously using a fresh broker connection.

    Returns:
        Tuple[bool, str, str]: (success, task_id, error_message)
    """
    try:
        from app.core.config import settings

        with Connection(settings.REDIS_URL) as conn:
            result = task.apply_async(
                args=args,
                kwargs=kwargs,
                connection=conn,
                retry=True,
                retry_policy={
                    'max_retries': 3,
                    'interval_start': 0,
                    'interval_step': 0.2,
                    'interval_max': 0.2,
                }
            )
            return (True, result.id, "")
    except Exception as e:
        return (False, "", str(e))


def queue_task_safely(task: Task, *args, **kwargs) -> bool:
    """
    Safely queue a Celery task with connection retry logic.

    Args:
        task: The Celery task to queue
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task

    Returns:
        bool: True if task was queued successfully, False otherwise

    Example:
        from app.tasks.email_tasks import send_verification_email_task
        queued = queue_task_safely(
            send_verification_email_task,
            to_email='owner@example.com',
            verification_code='123456',
            user_name='Jane Doe'
        )
    """
    future = _executor.submit(_queue_task_sync, task, args, kwargs)
    try:
        success, task_id, error = future.result(timeout=QUEUE_TIMEOUT_SECONDS)
    except FutureTimeout:
        success, task_id, error = False, "", f"timed out after {QUEUE_TIMEOUT_SECONDS}s"

    if success:
        logger.info(f"Task {task.name} queued successfully: {task_id}")
        return True

    logger.error(f"Failed to queue task {task.name}: {error}")
    return False
