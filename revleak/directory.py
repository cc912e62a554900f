"""
Account directory: connected Stripe account id -> notification email.

Backed by a Supabase table reached through its PostgREST endpoint. The table
is expected to look like ``supabase/schema.sql``.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .config import Settings
from .errors import PersistenceError

LOG = logging.getLogger("revleak.directory")

REQUEST_TIMEOUT = 10


@dataclass(frozen=True)
class AccountRecord:
    stripe_account_id: str
    email: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AccountRecord":
        return cls(
            stripe_account_id=str(row.get("stripe_account_id") or ""),
            email=(row.get("email") or "").strip(),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


def _now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


class SupabaseAccountDirectory:
    def __init__(
        self,
        base_url: str,
        service_key: str,
        table: str = "accounts",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SupabaseAccountDirectory":
        settings.require("supabase_url", "supabase_service_role_key")
        return cls(
            settings.supabase_url,
            settings.supabase_service_role_key,
            table=settings.supabase_accounts_table,
        )

    def _request(self, method: str, **kwargs: Any) -> List[Dict[str, Any]]:
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self._session.request(
                method, self.endpoint, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs
            )
        except requests.RequestException as exc:
            LOG.error("Directory request failed: %s", exc)
            raise PersistenceError(f"Account directory unavailable: {exc}") from exc

        if response.status_code >= 400:
            try:
                detail = response.json()
            except ValueError:
                detail = response.text.strip()
            if isinstance(detail, dict):
                detail = detail.get("message") or detail
            LOG.error("Directory %s returned %s: %s", method, response.status_code, detail)
            raise PersistenceError(f"Account directory request failed ({response.status_code}): {detail}")

        try:
            rows = response.json()
        except ValueError as exc:
            raise PersistenceError("Account directory returned an invalid response") from exc
        return rows if isinstance(rows, list) else [rows]

    def get(self, account_id: str) -> Optional[AccountRecord]:
        rows = self._request(
            "GET",
            params={"stripe_account_id": f"eq.{account_id}", "select": "*", "limit": "1"},
        )
        if not rows:
            return None
        return AccountRecord.from_row(rows[0])

    def upsert(self, account_id: str, email: str) -> AccountRecord:
        """Insert or overwrite the email for an account; safe to repeat."""
        payload = {
            "stripe_account_id": account_id,
            "email": email,
            "updated_at": _now_iso(),
        }
        rows = self._request(
            "POST",
            params={"on_conflict": "stripe_account_id"},
            json=payload,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        LOG.info("Stored notification email for %s", account_id)
        if rows:
            return AccountRecord.from_row(rows[0])
        return AccountRecord(stripe_account_id=account_id, email=email, updated_at=payload["updated_at"])
