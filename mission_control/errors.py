"""
Error taxonomy for Mission Control.

Every error raised by repositories and services carries the HTTP status it
maps to. The FastAPI app turns them into ``{"error": message}`` bodies.
"""

from __future__ import annotations


class MissionControlError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MissionControlError):
    """Missing/empty required field or unknown enum value (400)."""

    status_code = 400


class UnauthorizedError(MissionControlError):
    """Missing/invalid session or wrong client password (401)."""

    status_code = 401


class NotFoundError(MissionControlError):
    status_code = 404


class ConflictError(MissionControlError):
    """Unique constraint violation, e.g. a taken client slug (409)."""

    status_code = 409


class StorageError(MissionControlError):
    """Any other database failure. Surfaced with the underlying message (500)."""

    status_code = 500


class SummaryGenerationError(RuntimeError):
    """Raised by a summary generator when the LLM call fails.

    Never reaches the client: the summary service degrades to the cached value.
    """


class ServiceUnavailableError(MissionControlError):
    """The external auth provider could not be reached (503)."""

    status_code = 503
