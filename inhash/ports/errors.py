"""
Exceptions raised by backend adapters at the network boundary.

Components catch these and convert them into result models; they never
leak past a component entry point.
"""

from __future__ import annotations


class BackendError(Exception):
    """Base class for backend failures."""


class InvalidCredentialsError(BackendError):
    """The backend rejected the supplied credentials or session token."""


class DuplicateAccountError(BackendError):
    """Signup for an email that already has an account."""


class BackendUnavailableError(BackendError):
    """Transport failure or server-side error. Retryable."""


class RateLimitedError(BackendError):
    """The backend asked the client to slow down. Retryable."""

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class SectionUnavailableError(BackendError):
    """One course section cannot be served. Skipped, not retried."""


class FetchCancelledError(BackendError):
    """The caller cancelled while a multi-page fetch was in progress. Not retried."""
