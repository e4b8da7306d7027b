"""
Errors - The hunt error taxonomy.

Pure components (unlock resolution, code validation, aggregation,
achievements) never raise. They classify. Only the submission path and
the session/flow layer raise these, and the API layer maps them to
structured error responses.

Every error carries:
- A human-readable message
- A stable error_code for clients
- The HTTP status the API layer should use
"""

from __future__ import annotations
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .engine_core.cooldown import RemainingTime


class HuntError(Exception):
    """Base class for every error the engine surfaces to callers."""

    error_code = "HUNT_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}


class ValidationError(HuntError):
    """Malformed input: a code, an answer index, a sign-up field."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class NotFound(HuntError):
    """Unknown location or player id."""

    error_code = "NOT_FOUND"
    status_code = 404


class Conflict(HuntError):
    """Attempted duplicate completion, or entering a location out of sequence."""

    error_code = "CONFLICT"
    status_code = 409


class CooldownActive(HuntError):
    """Quiz submission is gated until the cooldown deadline passes."""

    error_code = "COOLDOWN_ACTIVE"
    status_code = 429

    def __init__(self, remaining: RemainingTime, message: str | None = None):
        super().__init__(
            message or f"Quiz locked, try again in {remaining.display}",
            details={
                "remaining_seconds": remaining.total_seconds,
                "remaining": remaining.display,
            },
        )
        self.remaining = remaining


class BackendUnavailable(HuntError):
    """The network/storage backend failed. Retryable by the user."""

    error_code = "BACKEND_UNAVAILABLE"
    status_code = 503
