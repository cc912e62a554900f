"""
Thin wrapper around the Stripe SDK calls RevLeak makes.

A gateway is built per request from the current settings and passes the
secret key and API version on every call, so nothing is set on the global
``stripe`` module.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import stripe

from .config import Settings
from .errors import UpstreamError

LOG = logging.getLogger("revleak.stripe")

MAX_TRANSACTIONS = 100


def _err(exc: Exception) -> str:
    """Prefer Stripe's user-facing message when it has one."""
    user_message = getattr(exc, "user_message", None)
    if isinstance(user_message, str) and user_message:
        return user_message
    return str(exc) or exc.__class__.__name__


class StripeGateway:
    def __init__(self, api_key: str, api_version: Optional[str] = None, sdk: Any = stripe) -> None:
        self.api_key = api_key
        self.api_version = api_version
        self._sdk = sdk

    @classmethod
    def from_settings(cls, settings: Settings) -> "StripeGateway":
        settings.require("stripe_secret_key")
        return cls(settings.stripe_secret_key, settings.stripe_api_version)

    def _request_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"api_key": self.api_key}
        if self.api_version:
            options["stripe_version"] = self.api_version
        return options

    def list_balance_transactions(
        self, account_id: Optional[str] = None, limit: int = MAX_TRANSACTIONS
    ) -> List[Any]:
        """Return the most recent ``limit`` balance transactions, newest first.

        Without ``account_id`` the platform account's own ledger is listed.
        """
        options = self._request_options()
        if account_id:
            options["stripe_account"] = account_id
        try:
            page = self._sdk.BalanceTransaction.list(limit=min(limit, MAX_TRANSACTIONS), **options)
        except self._sdk.StripeError as exc:
            LOG.error("Balance transaction listing failed for %s: %s", account_id or "platform", exc)
            raise UpstreamError(_err(exc)) from exc
        return list(page.data)

    def exchange_oauth_code(self, code: str) -> str:
        """Trade an authorization code for the connected account id."""
        try:
            response = self._sdk.OAuth.token(
                api_key=self.api_key,
                grant_type="authorization_code",
                code=code,
            )
        except self._sdk.StripeError as exc:
            LOG.error("Stripe OAuth token exchange failed: %s", exc)
            raise UpstreamError(_err(exc)) from exc
        connected_account_id = getattr(response, "stripe_user_id", None)
        if not connected_account_id:
            raise UpstreamError("Failed to get connected account ID")
        return connected_account_id

    def retrieve_account_email(self, account_id: str) -> str:
        try:
            account = self._sdk.Account.retrieve(account_id, **self._request_options())
        except self._sdk.StripeError as exc:
            LOG.error("Account lookup failed for %s: %s", account_id, exc)
            raise UpstreamError(_err(exc)) from exc
        return getattr(account, "email", None) or ""

    def create_subscription_checkout(self, price_id: str, success_url: str, cancel_url: str) -> str:
        try:
            session = self._sdk.checkout.Session.create(
                mode="subscription",
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
                **self._request_options(),
            )
        except self._sdk.StripeError as exc:
            LOG.error("Checkout session creation failed: %s", exc)
            raise UpstreamError(_err(exc)) from exc
        url = getattr(session, "url", None)
        if not url:
            raise UpstreamError("Failed to create checkout session")
        return url
