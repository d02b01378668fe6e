"""
Dev auth backend.

In-memory app account backend for local development, demos and tests.
Passwords are stored as argon2 hashes, as the real account service does.
Hashing and verification run in a worker thread so a login never stalls
the event loop that drives link progress.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from uuid import uuid4

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from inhash.ports.errors import (
    BackendError,
    DuplicateAccountError,
    InvalidCredentialsError,
)

logger = logging.getLogger(__name__)


class DevAuthBackend:
    def __init__(self, *, latency: float = 0.0, hasher: PasswordHasher | None = None) -> None:
        self.ph = hasher or PasswordHasher()
        self._latency = latency
        # email -> (user_id, password hash)
        self._accounts: dict[str, tuple[str, str]] = {}
        self._failures: deque[BackendError] = deque()
        self.calls = 0

    def add_account(self, email: str, password: str, user_id: str | None = None) -> str:
        return self._store(email, self.ph.hash(password), user_id)

    def fail_next(self, *errors: BackendError) -> None:
        """Queue errors raised by the next calls, one per call."""
        self._failures.extend(errors)

    async def login(self, email: str, password: str) -> str:
        await self._enter()
        account = self._accounts.get(email.strip().lower())
        if account is None:
            raise InvalidCredentialsError("Unknown account")
        user_id, password_hash = account
        try:
            await asyncio.to_thread(self.ph.verify, password_hash, password)
        except VerifyMismatchError:
            raise InvalidCredentialsError("Password mismatch") from None
        return user_id

    async def signup(self, email: str, password: str) -> str:
        await self._enter()
        if email.strip().lower() in self._accounts:
            raise DuplicateAccountError("Email already in use")
        password_hash = await asyncio.to_thread(self.ph.hash, password)
        # A concurrent signup may have claimed the email while hashing
        if email.strip().lower() in self._accounts:
            raise DuplicateAccountError("Email already in use")
        user_id = self._store(email, password_hash)
        logger.debug("Dev auth: created account %s", user_id)
        return user_id

    def _store(self, email: str, password_hash: str, user_id: str | None = None) -> str:
        user_id = user_id or str(uuid4())
        self._accounts[email.strip().lower()] = (user_id, password_hash)
        return user_id

    async def _enter(self) -> None:
        self.calls += 1
        await asyncio.sleep(self._latency)
        if self._failures:
            raise self._failures.popleft()
