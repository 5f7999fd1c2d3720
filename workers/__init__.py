# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and task definitions for
# background email and contact-sync jobs.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions (bulk email, announcements, Brevo sync)
# - config.py: Worker-specific settings
#
# Usage:
#   # Start worker
#   celery -A workers.celery_app worker -Q default,email --loglevel=info
#
#   # Submit task (from API)
#   from workers.tasks import send_bulk_email
#   result = send_bulk_email.delay("marketing", subject, message)
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
