#!/usr/bin/env python3
"""
Email delivery helpers for RevLeak alerts.

Currently supports Resend transactional emails using the REST API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .config import Settings
from .errors import UpstreamError

RESEND_API_URL = "https://api.resend.com/emails"
REQUEST_TIMEOUT = 10

LOG = logging.getLogger("revleak.email")


class ResendMailer:
    def __init__(self, api_key: str, sender: str, session: Optional[requests.Session] = None) -> None:
        self.api_key = api_key
        self.sender = sender
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResendMailer":
        settings.require("resend_api_key", "alert_from_email")
        return cls(settings.resend_api_key, settings.alert_from_email)

    def send(
        self,
        *,
        recipient_email: str,
        subject: str,
        text_body: str,
        html_body: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send one email through Resend.

        Returns the provider's JSON response (it carries the message ``id``).
        Raises UpstreamError when the request fails or Resend rejects it,
        passing Resend's own error message through.
        """
        payload: Dict[str, Any] = {
            "from": self.sender,
            "to": [recipient_email],
            "subject": subject,
            "text": text_body,
        }
        if html_body:
            payload["html"] = html_body

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = self._session.post(RESEND_API_URL, json=payload, headers=headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            LOG.error("Failed to reach Resend: %s", exc)
            raise UpstreamError(f"Email delivery failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            message = data.get("message") if isinstance(data, dict) else None
            LOG.error("Resend rejected email to %s (%s): %s", recipient_email, response.status_code, message)
            raise UpstreamError(message or f"Email delivery failed ({response.status_code})")

        LOG.info("Sent alert email to %s", recipient_email)
        return data if isinstance(data, dict) else {}
