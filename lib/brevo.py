# =============================================================================
# lib/brevo.py - Brevo Contacts & Transactional Email
# =============================================================================
# Keeps a user's Brevo contact (attributes + list membership) in line with
# their email preferences. Each preference maps to one Brevo list; opting
# in adds the contact to the list, opting out unlinks it. Batch
# notifications go out through the transactional email endpoint.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from app.config import settings
from lib.utils import as_bool_string

logger = logging.getLogger(__name__)

API_BASE = "https://api.brevo.com/v3"


class BrevoError(Exception):
    """Raised when the Brevo API rejects a request."""


def preference_lists() -> dict[str, int]:
    """Preference key -> Brevo list ID."""
    return {
        "contentUpdates": settings.BREVO_LIST_CONTENT_UPDATES,
        "marketing": settings.BREVO_LIST_MARKETING,
        "accountChanges": settings.BREVO_LIST_ACCOUNT_CHANGES,
    }


def build_contact_payload(
    preferences: dict[str, Any],
    full_name: str | None = None,
    nickname: str | None = None,
) -> dict[str, Any]:
    """
    Translate preferences and profile names into a Brevo contact body.

    Attributes are sent as "true"/"false" strings because the Brevo
    account defines them as text attributes.
    """
    attributes: dict[str, str] = {
        "PREF_CONTENT_UPDATES": as_bool_string(preferences.get("contentUpdates", False)),
        "PREF_ACCOUNT_CHANGES": as_bool_string(preferences.get("accountChanges", False)),
        "PREF_MARKETING": as_bool_string(preferences.get("marketing", False)),
    }
    if full_name:
        first, _, last = full_name.strip().partition(" ")
        attributes["FIRSTNAME"] = first
        attributes["LASTNAME"] = last
    if nickname:
        attributes["NICKNAME"] = nickname

    list_ids, unlink_ids = [], []
    for key, list_id in preference_lists().items():
        (list_ids if preferences.get(key) is True else unlink_ids).append(list_id)

    return {"attributes": attributes, "listIds": list_ids, "unlinkListIds": unlink_ids}


class BrevoClient:
    """Thin wrapper over the Brevo contacts API."""

    def __init__(self, api_key: str | None = None, timeout: float = 10):
        self.api_key = api_key or settings.BREVO_API_KEY
        self.timeout = timeout

    def _request(self, method: str, path: str, json: dict | None = None) -> httpx.Response:
        return httpx.request(
            method,
            f"{API_BASE}{path}",
            json=json,
            headers={"api-key": self.api_key, "accept": "application/json"},
            timeout=self.timeout,
        )

    def get_contact(self, email: str) -> dict[str, Any] | None:
        response = self._request("GET", f"/contacts/{quote(email)}")
        if response.status_code == 404:
            return None
        if response.is_error:
            raise BrevoError(f"Brevo lookup for {email} failed: {response.status_code} {response.text}")
        return response.json()

    def sync_contact(
        self,
        email: str,
        preferences: dict[str, Any],
        full_name: str | None = None,
        nickname: str | None = None,
    ) -> str:
        """
        Create or update the contact for email.

        Returns:
            "updated" or "created"

        Raises:
            BrevoError: On any non-success response
        """
        if not self.api_key:
            raise BrevoError("BREVO_API_KEY is not set")

        payload = build_contact_payload(preferences, full_name=full_name, nickname=nickname)

        if self.get_contact(email) is not None:
            response = self._request("PUT", f"/contacts/{quote(email)}", json=payload)
            outcome = "updated"
        else:
            create_payload = {
                "email": email,
                "attributes": payload["attributes"],
                "listIds": payload["listIds"],
                "updateEnabled": True,
            }
            response = self._request("POST", "/contacts", json=create_payload)
            outcome = "created"

        if response.is_error:
            raise BrevoError(f"Brevo sync for {email} failed: {response.status_code} {response.text}")

        logger.info(f"Brevo contact {outcome}: {email}")
        return outcome

    def send_transactional_email(
        self,
        recipients: list[dict[str, str]],
        subject: str,
        html: str,
    ) -> str:
        """
        Send one transactional email to a batch of recipients.

        Args:
            recipients: [{"email": ..., "name": ...}]; name may be omitted

        Returns:
            Brevo message ID

        Raises:
            BrevoError: If not configured or Brevo rejects the send
        """
        if not self.api_key:
            raise BrevoError("BREVO_API_KEY is not set")

        payload = {
            "sender": {"email": settings.ADMIN_SENDER_EMAIL, "name": settings.ADMIN_SENDER_NAME},
            "to": recipients,
            "subject": subject,
            "htmlContent": html,
        }
        response = self._request("POST", "/smtp/email", json=payload)
        if response.is_error:
            raise BrevoError(f"Brevo send failed: {response.status_code} {response.text}")

        message_id = response.json().get("messageId", "")
        logger.info(f"Brevo email '{subject}' sent to {len(recipients)} recipients ({message_id})")
        return message_id
