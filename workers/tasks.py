# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background jobs started from the admin back office.
#
# Tasks:
# - send_bulk_email: Email every member opted into a category
# - notify_new_content: Announce new content to content-update subscribers
# - sync_brevo_contacts: Push member preferences to Brevo
# =============================================================================

import logging
from datetime import datetime
from typing import Any

from celery import shared_task, current_task

from core.models.admin import NotificationType
from core.services.admin_service import AdminService
from core.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


# =============================================================================
# Task State Updates
# =============================================================================

def update_progress(current: int, total: int, message: str = "Processing..."):
    """
    Update task progress for polling.

    Args:
        current: Current step number
        total: Total steps
        message: Status message
    """
    if current_task and total:
        current_task.update_state(
            state="PROGRESS",
            meta={
                "current": current,
                "total": total,
                "percent": int((current / total) * 100),
                "message": message,
            }
        )


# =============================================================================
# Email Tasks
# =============================================================================

@shared_task(bind=True, name="workers.tasks.send_bulk_email")
def send_bulk_email(
    self,
    notification_type: str,
    subject: str,
    message: str,
    recipients: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """
    Send an admin message to members who opted into notification_type.

    Args:
        notification_type: contentUpdates / accountChanges / marketing
        subject: Subject line
        message: Plain-text body
        recipients: Precomputed recipients; looked up when omitted

    Returns:
        Dict with sent, failed and total counts
    """
    if recipients is None:
        recipients = NotificationService.find_recipients(NotificationType(notification_type))

    logger.info(f"Bulk email '{subject}' to {len(recipients)} {notification_type} subscribers")

    def on_progress(done: int, total: int) -> None:
        update_progress(done, total, f"Sent {done} of {total}")

    return NotificationService.send_bulk_email(recipients, subject, message, on_progress=on_progress)


@shared_task(bind=True, name="workers.tasks.notify_new_content")
def notify_new_content(self, subject: str, html: str) -> dict[str, Any]:
    """Announce new modules/sections to content-update subscribers."""
    update_progress(0, 1, "Sending announcement")
    return NotificationService.send_new_content_notification(subject, html)


# =============================================================================
# Brevo Tasks
# =============================================================================

@shared_task(bind=True, name="workers.tasks.sync_brevo_contacts")
def sync_brevo_contacts(self, since: str | None = None) -> dict[str, Any]:
    """
    Push member preferences to Brevo.

    Args:
        since: ISO timestamp; only profiles created after it are synced
    """
    cutoff = datetime.fromisoformat(since) if since else None

    def on_progress(done: int, total: int) -> None:
        update_progress(done, total, f"Synced {done} of {total}")

    return AdminService.sync_brevo_contacts(since=cutoff, on_progress=on_progress)
