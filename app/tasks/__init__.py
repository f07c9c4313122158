"""
Celery tasks package.

Tasks are organized by domain:
- email_tasks: verification, password reset and pending-approval emails
- maintenance_tasks: periodic cleanup of verification records and sessions
"""

from app.tasks import email_tasks, maintenance_tasks

__all__ = ["email_tasks", "maintenance_tasks"]
