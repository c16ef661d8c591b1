"""Error taxonomy shared by the conference flow and the HTTP layer."""
from __future__ import annotations

from typing import Any

FALLBACK_MESSAGE = "TrueConf API Error"


class PatientRoomError(Exception):
    """Base error carrying the upstream status and body when there is one."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ConfigError(PatientRoomError):
    """Raised when a required environment variable is missing."""


class AuthError(PatientRoomError):
    """Raised when the OAuth token exchange fails."""


class ApiError(PatientRoomError):
    """Raised when a TrueConf API call fails or returns no usable payload."""


class ValidationError(PatientRoomError):
    """Raised when the browser sends a malformed request body."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


def status_for(exc: BaseException) -> int:
    """Map an error to the HTTP status returned to the browser."""

    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int) and status_code >= 400:
        return status_code
    return 500


def describe_error(exc: BaseException) -> str:
    """Return the most specific human readable message available for ``exc``."""

    payload = getattr(exc, "payload", None)
    if isinstance(payload, dict):
        for key in ("error_description", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
    message = str(exc).strip()
    return message or FALLBACK_MESSAGE
