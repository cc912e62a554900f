"""
Stripe Connect OAuth: authorize URL and code exchange.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from .errors import ValidationError

LOG = logging.getLogger("revleak.oauth")

AUTHORIZE_URL = "https://connect.stripe.com/oauth/authorize"
CALLBACK_PATH = "/connect/callback"


@dataclass(frozen=True)
class ExchangeResult:
    connected_account_id: str
    email: str

    def to_dict(self) -> dict:
        return {"connectedAccountId": self.connected_account_id, "email": self.email}


def build_authorize_url(client_id: str, app_url: str) -> str:
    params = {
        "response_type": "code",
        "client_id": client_id,
        "scope": "read_write",
        "redirect_uri": f"{app_url.rstrip('/')}{CALLBACK_PATH}",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def exchange_code(code: str, *, gateway: Any, directory: Any) -> ExchangeResult:
    """
    Trade an authorization code for the connected account and its email.

    A known account returns its stored email without asking Stripe for the
    account details again, so a replayed callback is harmless. New accounts
    are registered only when Stripe reports an email.
    """
    code = (code or "").strip()
    if not code:
        raise ValidationError("Missing authorization code")

    account_id = gateway.exchange_oauth_code(code)

    existing = directory.get(account_id)
    if existing is not None:
        LOG.info("Account %s already registered; reusing stored email", account_id)
        return ExchangeResult(account_id, existing.email)

    email = gateway.retrieve_account_email(account_id)
    if email:
        directory.upsert(account_id, email)
    else:
        LOG.warning("Connected account %s has no email on file", account_id)
    return ExchangeResult(account_id, email)
