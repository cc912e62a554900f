"""
Error kinds shared by the RevLeak services and the HTTP layer.

Every failure a request can hit is one of the kinds below. Services raise
the matching ``RevLeakError`` subclass; the API blueprint turns it into a
JSON body with the status from ``STATUS_BY_KIND``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Tuple

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."


class ErrorKind(Enum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    PERSISTENCE = "persistence"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM: 500,
    ErrorKind.PERSISTENCE: 500,
}


class RevLeakError(Exception):
    """Base class for failures that map onto an HTTP response."""

    kind: ErrorKind = ErrorKind.UPSTREAM

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ConfigurationError(RevLeakError):
    """A required environment value is absent."""

    kind = ErrorKind.CONFIGURATION

    @classmethod
    def missing(cls, *names: str) -> "ConfigurationError":
        if len(names) == 1:
            return cls(f"Missing environment variable: {names[0]}")
        return cls(f"Missing environment variables: {', '.join(names)}")


class ValidationError(RevLeakError):
    kind = ErrorKind.VALIDATION


class NotFoundError(RevLeakError):
    kind = ErrorKind.NOT_FOUND


class UpstreamError(RevLeakError):
    """Stripe or the email provider failed or answered with an error payload."""

    kind = ErrorKind.UPSTREAM


class PersistenceError(RevLeakError):
    kind = ErrorKind.PERSISTENCE


def error_response(exc: RevLeakError) -> Tuple[Dict[str, str], int]:
    """Return the ``({"error": ...}, status)`` pair for an error."""
    message = (exc.message or "").strip() or GENERIC_ERROR_MESSAGE
    return {"error": message}, STATUS_BY_KIND[exc.kind]
