from __future__ import annotations

import httpx

from inhash.ports.errors import (
    BackendUnavailableError,
    DuplicateAccountError,
    InvalidCredentialsError,
    RateLimitedError,
    SectionUnavailableError,
)

SECTION_MISSING_CODES = {403, 404, 410}


def retry_after_seconds(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        # HTTP-date form is not used by the backends we talk to
        return None


def raise_for_backend_status(response: httpx.Response, *, section: bool = False) -> None:
    """Translate an HTTP error status into a boundary exception."""
    code = response.status_code
    if code < 400:
        return
    if code == 401:
        raise InvalidCredentialsError(f"HTTP {code}")
    if section and code in SECTION_MISSING_CODES:
        raise SectionUnavailableError(f"HTTP {code}")
    if code == 403:
        raise InvalidCredentialsError(f"HTTP {code}")
    if code == 409:
        raise DuplicateAccountError(f"HTTP {code}")
    if code == 429:
        raise RateLimitedError(f"HTTP {code}", retry_after=retry_after_seconds(response))
    raise BackendUnavailableError(f"HTTP {code}")
