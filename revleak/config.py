"""
Environment-backed settings for RevLeak.

Values come from the process environment, with a project-level ``.env``
loaded first (existing variables win). Settings are read per request so a
changed environment is picked up without restarting the worker.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_STRIPE_API_VERSION = "2025-11-17.clover"
DEFAULT_ACCOUNTS_TABLE = "accounts"
_INLINE_COMMENT_REGEX = re.compile(r"\s+#")

# Settings attribute -> environment variable.
ENV_NAMES: Dict[str, str] = {
    "stripe_secret_key": "STRIPE_SECRET_KEY",
    "stripe_connect_client_id": "STRIPE_CONNECT_CLIENT_ID",
    "stripe_api_version": "STRIPE_API_VERSION",
    "app_url": "APP_URL",
    "resend_api_key": "RESEND_API_KEY",
    "alert_from_email": "ALERT_FROM_EMAIL",
    "supabase_url": "SUPABASE_URL",
    "supabase_service_role_key": "SUPABASE_SERVICE_ROLE_KEY",
    "supabase_accounts_table": "SUPABASE_ACCOUNTS_TABLE",
}

# Plan id -> environment variable holding its Stripe price id.
PRICE_ENV_NAMES: Dict[str, str] = {
    "starter": "PRICE_STARTER",
    "growth": "PRICE_GROWTH",
    "pro": "PRICE_PRO",
}


def load_environment(env_file: Optional[Path] = None) -> None:
    load_dotenv(env_file or BASE_DIR.parent / ".env", override=False)


def _clean_env_value(raw: Optional[str]) -> str:
    """Return env values without trailing inline comments or extra whitespace."""
    if raw is None:
        return ""
    candidate = raw.strip()
    if not candidate:
        return ""
    parts = _INLINE_COMMENT_REGEX.split(candidate, 1)
    return parts[0].strip()


@dataclass(frozen=True)
class Settings:
    stripe_secret_key: str = ""
    stripe_connect_client_id: str = ""
    stripe_api_version: str = DEFAULT_STRIPE_API_VERSION
    app_url: str = ""
    resend_api_key: str = ""
    alert_from_email: str = ""
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_accounts_table: str = DEFAULT_ACCOUNTS_TABLE
    price_ids: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        values = {attr: _clean_env_value(env.get(name)) for attr, name in ENV_NAMES.items()}
        values["stripe_api_version"] = values["stripe_api_version"] or DEFAULT_STRIPE_API_VERSION
        values["supabase_accounts_table"] = values["supabase_accounts_table"] or DEFAULT_ACCOUNTS_TABLE
        values["app_url"] = values["app_url"].rstrip("/")
        values["supabase_url"] = values["supabase_url"].rstrip("/")
        price_ids = {plan: _clean_env_value(env.get(name)) for plan, name in PRICE_ENV_NAMES.items()}
        return cls(price_ids=price_ids, **values)

    def require(self, *attributes: str) -> None:
        """Raise ConfigurationError naming every listed value that is blank."""
        missing = [ENV_NAMES[attr] for attr in attributes if not getattr(self, attr)]
        if missing:
            raise ConfigurationError.missing(*missing)

    def price_id_for(self, plan: str) -> str:
        return self.price_ids.get(plan, "")

    def integration_status(self) -> Dict[str, str]:
        def _status(*attrs: str) -> str:
            return "configured" if all(getattr(self, attr) for attr in attrs) else "not_configured"

        return {
            "stripe": _status("stripe_secret_key"),
            "stripe_connect": _status("stripe_connect_client_id", "app_url"),
            "email": _status("resend_api_key", "alert_from_email"),
            "directory": _status("supabase_url", "supabase_service_role_key"),
            "billing": "configured" if all(self.price_ids.get(p) for p in PRICE_ENV_NAMES) else "not_configured",
        }
