"""Exception types raised across SmartMark."""

from __future__ import annotations


class SmartMarkError(Exception):
    """Base class for SmartMark errors."""


class RemoteError(SmartMarkError):
    """A call to the hosted backend failed.

    ``message`` is safe to show to the user; ``code`` is the backend's
    error code when one was supplied (PostgREST / GoTrue).
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} ({self.code})"
        return self.message


class MalformedRecordError(SmartMarkError, ValueError):
    """A row from the backend is missing required fields."""


class InvalidBookmarkError(SmartMarkError, ValueError):
    """User input cannot become a bookmark (blank title or url)."""


class ConfigError(SmartMarkError):
    """Service endpoint or credentials are not configured."""
