"""
Retry, backoff and progress helpers for the LMS client.

Key behaviors:
- Each fetch step gets a bounded timeout; a timeout counts as a network error
- RateLimited and network errors retry with exponential backoff
- Invalid credentials stop immediately
- Cancellation is checked before each attempt and during backoff waits, and
  adapters check it between pages of a paginated fetch
- Progress reported to the caller never decreases and stays within [0, 100]
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Literal, TypeVar

from inhash.domain.cancellation import CancellationToken
from inhash.ports.errors import (
    BackendUnavailableError,
    FetchCancelledError,
    InvalidCredentialsError,
    RateLimitedError,
)
from inhash.rules.models import RetryRules

from .models import ProgressCallback

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Values match the LmsAuthErrorKind / CollectionErrorKind enum values
FailureReason = Literal["invalid_credentials", "rate_limited", "network_error"]


# --- Internal control flow ---


class StepCancelled(Exception):
    """Cancellation observed at a checkpoint."""


class StepFailed(Exception):
    """A fetch step failed for good (non-retryable or retries exhausted)."""

    def __init__(self, reason: FailureReason, attempts: int) -> None:
        super().__init__(f"{reason} after {attempts} attempt(s)")
        self.reason = reason
        self.attempts = attempts


# --- Backoff Calculation ---


def compute_backoff(
    attempt: int,
    rules: RetryRules,
    retry_after: float | None = None,
) -> float:
    """
    Delay before the next attempt, using exponential backoff.

    Args:
        attempt: Number of the attempt that just failed (1-based)
        rules: Retry configuration
        retry_after: Server hint from a rate-limit response, used as a floor

    Returns the delay in seconds, capped at backoff_max_seconds unless the
    server asked for longer.
    """
    exponent = max(0, attempt - 1)
    delay = min(rules.backoff_base_seconds * (2**exponent), rules.backoff_max_seconds)
    if retry_after is not None:
        delay = max(delay, retry_after)
    return delay


class RetryingCaller:
    """Runs backend calls under the retry/timeout policy and counts retries."""

    def __init__(self, rules: RetryRules, timeout_seconds: float) -> None:
        self._rules = rules
        self._timeout = timeout_seconds
        self.retries = 0

    async def call(
        self,
        label: str,
        fn: Callable[[], Awaitable[T]],
        cancel: CancellationToken,
    ) -> T:
        attempt = 0
        while True:
            if cancel.cancelled:
                raise StepCancelled(label)
            attempt += 1

            reason: FailureReason
            retry_after: float | None = None
            try:
                return await asyncio.wait_for(fn(), timeout=self._timeout)
            except FetchCancelledError:
                raise StepCancelled(label) from None
            except InvalidCredentialsError:
                raise StepFailed("invalid_credentials", attempt) from None
            except RateLimitedError as e:
                reason = "rate_limited"
                retry_after = e.retry_after
            except (BackendUnavailableError, TimeoutError):
                reason = "network_error"

            if attempt >= self._rules.max_attempts:
                logger.warning("%s failed: %s, giving up after %d attempts", label, reason, attempt)
                raise StepFailed(reason, attempt)

            delay = compute_backoff(attempt, self._rules, retry_after)
            logger.warning(
                "%s failed: %s, retry %d/%d in %.2fs",
                label,
                reason,
                attempt,
                self._rules.max_attempts - 1,
                delay,
            )
            self.retries += 1
            if await cancel.sleep(delay):
                raise StepCancelled(label)


class ProgressTracker:
    """Clamps progress to [0, 100] and only forwards increases."""

    def __init__(self, callback: ProgressCallback | None = None) -> None:
        self._callback = callback
        self._last = -1

    @property
    def last(self) -> int:
        return max(self._last, 0)

    def report(self, percent: int) -> None:
        percent = max(0, min(100, int(percent)))
        if percent <= self._last:
            return
        self._last = percent
        if self._callback is not None:
            self._callback(percent)
