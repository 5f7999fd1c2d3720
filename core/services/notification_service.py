# =============================================================================
# core/services/notification_service.py - Outgoing Email
# =============================================================================
# - Contact form messages to the site owner (Gmail)
# - Admin bulk emails to members who opted into a category (Gmail)
# - New content announcements as one Brevo batch
#
# Bulk sends run inside Celery tasks; see workers/tasks.py.
# =============================================================================

import html
import logging
from typing import Any, Callable

from app.config import settings
from app.exceptions import ValidationError
from core.models.account import ContactRequest
from core.models.admin import NotificationType
from lib.brevo import BrevoClient
from lib.gmail import GmailError, GmailSender
from lib.supabase_client import SupabaseClient
from lib.utils import is_valid_email

logger = logging.getLogger(__name__)

# Older profiles stored content opt-in under these keys
LEGACY_CONTENT_KEYS = ("courseUpdates", "newContent")


def wants(preferences: dict[str, Any] | None, notification_type: NotificationType) -> bool:
    """True when the preferences opt into notification_type."""
    if not preferences:
        return False
    keys = [notification_type.value]
    if notification_type is NotificationType.CONTENT_UPDATES:
        keys.extend(LEGACY_CONTENT_KEYS)
    return any(preferences.get(key) is True or preferences.get(key) == "true" for key in keys)


def render_message_html(message: str) -> str:
    """Turn a plain-text admin message into simple paragraphs."""
    paragraphs = [p.strip() for p in message.split("\n\n") if p.strip()]
    return "".join(
        f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs
    )


class NotificationService:

    # -------------------------------------------------------------------------
    # Contact form
    # -------------------------------------------------------------------------

    @staticmethod
    def validate_contact(form: ContactRequest) -> None:
        if not all(value.strip() for value in (form.name, form.email, form.subject, form.message)):
            raise ValidationError("All fields are required")
        if not is_valid_email(form.email.strip()):
            raise ValidationError("Invalid email address")

    @staticmethod
    def send_contact_message(form: ContactRequest) -> str:
        """
        Forward a contact form submission to ADMIN_RECIPIENT_EMAIL.

        Delivery problems never fail the visitor's request: without Gmail
        configured the message is only logged, and send errors are logged.

        Returns:
            Message for the visitor
        """
        NotificationService.validate_contact(form)

        if not (GmailSender.is_configured() and settings.ADMIN_RECIPIENT_EMAIL):
            logger.info(
                f"Contact form (email not configured) from {form.name} <{form.email}>: "
                f"{form.subject}\n{form.message}"
            )
            return "Message received. We'll get back to you soon."

        body = (
            f"<p><strong>From:</strong> {html.escape(form.name)} &lt;{html.escape(form.email)}&gt;</p>"
            f"<p><strong>Subject:</strong> {html.escape(form.subject)}</p>"
            f"{render_message_html(form.message)}"
        )
        try:
            GmailSender.send(
                to=settings.ADMIN_RECIPIENT_EMAIL,
                subject=f"Contact form: {form.subject}",
                html=body,
                text=form.message,
                reply_to=form.email.strip(),
            )
        except GmailError as e:
            logger.error(f"Contact form email failed: {e}")
            return "Message received, but there was a problem delivering it. We'll follow up."

        return "Message sent successfully"

    # -------------------------------------------------------------------------
    # Recipients
    # -------------------------------------------------------------------------

    @staticmethod
    def find_recipients(notification_type: NotificationType) -> list[dict[str, str]]:
        """
        Members who opted into notification_type.

        Profiles without an email column value fall back to the auth record.

        Returns:
            [{"id", "email", "name"}]
        """
        profiles = SupabaseClient.list_profiles("id, email, full_name, nickname, email_preferences")
        recipients = []
        for profile in profiles:
            if not wants(profile.get("email_preferences"), notification_type):
                continue

            email = profile.get("email")
            if not email:
                auth_user = SupabaseClient.get_auth_user(profile["id"])
                email = getattr(auth_user, "email", None)
            if not email:
                logger.warning(f"No email for opted-in user {profile['id']}")
                continue

            recipients.append({
                "id": profile["id"],
                "email": email,
                "name": profile.get("nickname") or profile.get("full_name") or "",
            })
        return recipients

    # -------------------------------------------------------------------------
    # Bulk sends
    # -------------------------------------------------------------------------

    @staticmethod
    def send_bulk_email(
        recipients: list[dict[str, str]],
        subject: str,
        message: str,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> dict[str, int]:
        """
        Send the same message to each recipient individually.

        Args:
            recipients: Output of find_recipients()
            subject: Subject line
            message: Plain-text body (rendered to simple HTML)
            on_progress: Called with (done, total) after each recipient

        Returns:
            {"sent", "failed", "total"}
        """
        body = render_message_html(message)
        sent = failed = 0
        total = len(recipients)

        for index, recipient in enumerate(recipients, start=1):
            try:
                GmailSender.send(to=recipient["email"], subject=subject, html=body, text=message)
                sent += 1
            except GmailError as e:
                failed += 1
                logger.warning(f"Bulk email to {recipient['email']} failed: {e}")
            if on_progress:
                on_progress(index, total)

        logger.info(f"Bulk email '{subject}': {sent} sent, {failed} failed of {total}")
        return {"sent": sent, "failed": failed, "total": total}

    @staticmethod
    def send_new_content_notification(subject: str, html_content: str) -> dict[str, int]:
        """Announce new content to content-update subscribers in one Brevo batch."""
        recipients = NotificationService.find_recipients(NotificationType.CONTENT_UPDATES)
        if not recipients:
            logger.info("No users are subscribed to content notifications")
            return {"sent": 0, "failed": 0, "total": 0}

        batch = [
            {"email": r["email"], "name": r["name"]} if r["name"] else {"email": r["email"]}
            for r in recipients
        ]
        BrevoClient().send_transactional_email(batch, subject, html_content)
        return {"sent": len(batch), "failed": 0, "total": len(batch)}
