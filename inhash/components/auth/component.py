"""
AuthSessionManager - Owns the app account Session.

Key behaviors:
- Input is validated locally before the backend is contacted
- Exactly one login/signup may be in flight; a second call gets BUSY
- Transport failures and timeouts surface as NETWORK_ERROR
- Logout resets both Session and LinkState
- A backend response arriving after logout is discarded
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Literal

from inhash.components.credentials import validate_app_credentials
from inhash.domain.entities import LinkState, Session
from inhash.domain.errors import AuthError, AuthErrorKind
from inhash.domain.observable import StateContainer
from inhash.ports.errors import (
    BackendUnavailableError,
    DuplicateAccountError,
    InvalidCredentialsError,
    RateLimitedError,
)
from inhash.rules.models import Rules

from .models import AuthOutput
from .ports import AuthBackendPort

logger = logging.getLogger(__name__)

AuthAction = Literal["login", "signup"]


class AuthSessionManager:
    def __init__(
        self,
        backend: AuthBackendPort,
        session_state: StateContainer[Session],
        link_state: StateContainer[LinkState],
        *,
        rules: Rules | None = None,
    ) -> None:
        self._backend = backend
        self._session = session_state
        self._link = link_state
        self._rules = rules or Rules()
        self._in_flight = False
        # Bumped on logout so late responses can be recognised as stale
        self._generation = 0

    @property
    def session(self) -> Session:
        return self._session.value

    @property
    def busy(self) -> bool:
        return self._in_flight

    async def login(self, email: str, password: str) -> AuthOutput:
        return await self._authenticate("login", email, password)

    async def signup(self, email: str, password: str) -> AuthOutput:
        return await self._authenticate("signup", email, password)

    def logout(self) -> Session:
        self._generation += 1
        user_id = self._session.value.user_id
        self._session.reset()
        self._link.reset()
        logger.info("Logged out user %s", user_id)
        return self._session.value

    async def _authenticate(self, action: AuthAction, email: str, password: str) -> AuthOutput:
        if self._in_flight:
            logger.warning("Rejected %s: another request is in flight", action)
            return AuthOutput(session=self.session, error=AuthError.of(AuthErrorKind.BUSY))

        validation = validate_app_credentials(
            email, password, for_signup=action == "signup", rules=self._rules
        )
        if not validation.is_valid:
            return AuthOutput(session=self.session, validation_errors=validation.errors)

        call: Callable[[str, str], Awaitable[str]] = (
            self._backend.login if action == "login" else self._backend.signup
        )
        generation = self._generation
        self._in_flight = True
        try:
            user_id = await asyncio.wait_for(
                call(email.strip(), password), timeout=self._rules.timeouts.auth_seconds
            )
        except InvalidCredentialsError:
            return self._fail(action, generation, AuthErrorKind.INVALID_CREDENTIALS)
        except DuplicateAccountError:
            return self._fail(action, generation, AuthErrorKind.DUPLICATE_ACCOUNT)
        except (BackendUnavailableError, RateLimitedError, TimeoutError) as e:
            logger.warning("Auth backend %s failed: %s", action, str(e) or type(e).__name__)
            return self._fail(action, generation, AuthErrorKind.NETWORK_ERROR)
        finally:
            self._in_flight = False

        if generation != self._generation:
            logger.info("Discarded stale %s response", action)
            return AuthOutput(session=self.session)

        self._session.set(Session(is_authenticated=True, user_id=user_id))
        logger.info("%s succeeded for user %s", action.capitalize(), user_id)
        return AuthOutput(session=self.session, success=True)

    def _fail(self, action: AuthAction, generation: int, kind: AuthErrorKind) -> AuthOutput:
        error = AuthError.of(kind)
        if generation != self._generation:
            logger.info("Discarded stale %s failure (%s)", action, kind.value)
            return AuthOutput(session=self.session, error=error)

        self._session.set(
            Session(is_authenticated=False, error_message=error.message, error_kind=kind)
        )
        logger.info("%s failed: %s", action.capitalize(), kind.value)
        return AuthOutput(session=self.session, error=error)
