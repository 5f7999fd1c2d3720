# =============================================================================
# lib/gmail.py - Gmail API Sender
# =============================================================================
# Sends transactional mail through the Gmail REST API using an OAuth
# refresh token for the sender mailbox. Access tokens are exchanged on
# demand and cached until shortly before they expire.
#
# Usage:
#   from lib.gmail import GmailSender
#   GmailSender.send(to="a@b.com", subject="Hi", html="<p>Hello</p>")
# =============================================================================

from __future__ import annotations

import base64
import logging
import time
from email.message import EmailMessage
from email.utils import formataddr

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"

# Refresh this many seconds before Google says the token expires
TOKEN_EXPIRY_MARGIN = 60


class GmailError(Exception):
    """Raised when token exchange or sending fails."""


class GmailSender:
    """
    Minimal Gmail API client.

    All methods are class methods; the access token is cached on the class
    so API handlers and Celery tasks share it within a process.
    """

    _access_token: str | None = None
    _expires_at: float = 0

    @classmethod
    def is_configured(cls) -> bool:
        return settings.gmail_configured

    @classmethod
    def _get_access_token(cls) -> str:
        if cls._access_token and time.time() < cls._expires_at:
            return cls._access_token

        try:
            response = httpx.post(
                TOKEN_URL,
                data={
                    "client_id": settings.GOOGLE_CLIENT_ID,
                    "client_secret": settings.GOOGLE_CLIENT_SECRET,
                    "refresh_token": settings.GOOGLE_REFRESH_TOKEN,
                    "grant_type": "refresh_token",
                },
                timeout=10,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GmailError(f"Failed to refresh Gmail access token: {e}") from e

        payload = response.json()
        cls._access_token = payload["access_token"]
        cls._expires_at = time.time() + int(payload.get("expires_in", 3600)) - TOKEN_EXPIRY_MARGIN
        logger.debug("Refreshed Gmail access token")
        return cls._access_token

    @staticmethod
    def build_message(
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
        reply_to: str | None = None,
    ) -> EmailMessage:
        """Build an RFC 2822 message with a plain-text and an HTML part."""
        message = EmailMessage()
        message["From"] = formataddr((settings.ADMIN_SENDER_NAME, settings.ADMIN_SENDER_EMAIL))
        message["To"] = to
        message["Subject"] = subject
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(text or "This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    @classmethod
    def send(
        cls,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
        reply_to: str | None = None,
    ) -> str:
        """
        Send one message.

        Returns:
            Gmail message ID

        Raises:
            GmailError: If not configured or the API call fails
        """
        if not cls.is_configured():
            raise GmailError("Gmail is not configured (GOOGLE_* / ADMIN_SENDER_EMAIL)")

        message = cls.build_message(to, subject, html, text=text, reply_to=reply_to)
        raw = base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")

        try:
            response = httpx.post(
                SEND_URL,
                json={"raw": raw},
                headers={"Authorization": f"Bearer {cls._get_access_token()}"},
                timeout=15,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GmailError(f"Gmail send to {to} failed: {e}") from e

        message_id = response.json().get("id", "")
        logger.info(f"Sent email '{subject}' to {to} ({message_id})")
        return message_id
