"""
AccountLinkingOrchestrator - Login, LMS linking and collection as one state machine.

Composes the AuthSessionManager and the LmsLinkClient and drives the phase
(UNAUTHENTICATED → UNLINKED → LINKING → LINKED) the view layer renders from.

Key behaviors:
- Commands are rejected, not queued, while a conflicting operation runs
- LMS authenticate failure returns to UNLINKED without starting collect
- Collection progress streams into LinkState.collection_progress
- Success forces progress to 100 and persists the linkage
- Failure or cancellation returns to UNLINKED with progress reset to 0
- Logout cancels the in-flight attempt; its late results are discarded

Invariants:
- Every LinkState change goes through a VALID_TRANSITIONS check
- At most one link attempt is current at any time
- LMS credentials are dropped once the authenticate step completes
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from functools import partial

from inhash.components.auth import AuthOutput, AuthSessionManager
from inhash.components.credentials import validate_lms_credentials
from inhash.components.lms import CollectionOutput, LmsLinkClient
from inhash.domain.cancellation import CancellationToken
from inhash.domain.entities import LinkState, LmsCredentials, Session
from inhash.domain.errors import (
    AuthError,
    AuthErrorKind,
    CollectionError,
    CollectionErrorKind,
    LinkError,
    LinkErrorKind,
    LmsAuthError,
    LmsAuthErrorKind,
)
from inhash.domain.observable import StateContainer
from inhash.domain.state import (
    AppPhase,
    InvalidTransitionError,
    Route,
    can_transition,
    derive_phase,
    route_for,
)
from inhash.rules.models import Rules

from .models import LinkOutput
from .ports import LinkStateStorePort, ScheduleStorePort, TimePort

logger = logging.getLogger(__name__)


@dataclass
class _LinkAttempt:
    id: int
    credentials: LmsCredentials | None
    cancel: CancellationToken
    relink: bool
    task: asyncio.Task[LinkOutput] | None = None


class AccountLinkingOrchestrator:
    def __init__(
        self,
        auth: AuthSessionManager,
        lms: LmsLinkClient,
        session_state: StateContainer[Session],
        link_state: StateContainer[LinkState],
        *,
        store: LinkStateStorePort | None = None,
        schedule: ScheduleStorePort | None = None,
        time: TimePort | None = None,
        rules: Rules | None = None,
    ) -> None:
        self._auth = auth
        self._lms = lms
        self._session = session_state
        self._link = link_state
        self._store = store
        self._schedule = schedule
        self._time = time
        self._rules = rules or Rules()
        self._attempt: _LinkAttempt | None = None
        self._last_task: asyncio.Task[LinkOutput] | None = None
        self._attempt_seq = 0

    # --- Observable state ---

    @property
    def session_state(self) -> StateContainer[Session]:
        return self._session

    @property
    def link_state(self) -> StateContainer[LinkState]:
        return self._link

    @property
    def session(self) -> Session:
        return self._session.value

    @property
    def link(self) -> LinkState:
        return self._link.value

    @property
    def phase(self) -> AppPhase:
        return derive_phase(self._session.value, self._link.value)

    @property
    def route(self) -> Route:
        return route_for(self.phase)

    # --- Account commands ---

    async def login(self, email: str, password: str) -> AuthOutput:
        if self.phase is AppPhase.LINKING:
            return self._auth_busy("login")
        if self.session.is_authenticated:
            # Signing in again starts from a clean slate
            self.logout()

        result = await self._auth.login(email, password)
        if result.success:
            self._restore_linkage()
        return replace(result, session=self.session)

    async def signup(self, email: str, password: str) -> AuthOutput:
        if self.phase is AppPhase.LINKING:
            return self._auth_busy("signup")
        if self.session.is_authenticated:
            self.logout()

        result = await self._auth.signup(email, password)
        if result.success:
            self._restore_linkage()
        return replace(result, session=self.session)

    def logout(self) -> Session:
        attempt = self._attempt
        if attempt is not None:
            attempt.cancel.cancel()
            self._attempt = None
            logger.info("Logout cancelled link attempt %d", attempt.id)
        if self._schedule is not None:
            self._schedule.clear()
        return self._auth.logout()

    # --- Link commands ---

    def start_lms_link(self, student_id: str, password: str) -> LinkOutput:
        """
        Begin linking without waiting for it to finish.

        Must be called from a running event loop. Returns immediately with
        `accepted=True` once the phase is LINKING; rejected commands leave all
        state untouched.
        """
        phase = self.phase
        if phase is AppPhase.UNAUTHENTICATED:
            logger.warning("Rejected LMS link: not authenticated")
            return LinkOutput(state=self.link, error=LinkError.of(LinkErrorKind.NOT_AUTHENTICATED))
        if phase is AppPhase.LINKING or self._attempt is not None:
            logger.warning("Rejected LMS link: attempt already in progress")
            return LinkOutput(state=self.link, error=LinkError.of(LinkErrorKind.BUSY))

        validation = validate_lms_credentials(student_id, password, rules=self._rules)
        if not validation.is_valid:
            return LinkOutput(state=self.link, validation_errors=validation.errors)

        loop = asyncio.get_running_loop()
        self._attempt_seq += 1
        attempt = _LinkAttempt(
            id=self._attempt_seq,
            credentials=LmsCredentials(student_id=student_id.strip(), password=password),
            cancel=CancellationToken(),
            relink=phase is AppPhase.LINKED,
        )
        self._apply(LinkState(is_linking=True))

        previous = self._last_task
        attempt.task = loop.create_task(self._run(attempt, previous), name=f"lms-link-{attempt.id}")
        self._attempt = attempt
        self._last_task = attempt.task
        logger.info("Started %s attempt %d", "re-link" if attempt.relink else "link", attempt.id)
        return LinkOutput(state=self.link, accepted=True)

    async def submit_lms_link(self, student_id: str, password: str) -> LinkOutput:
        started = self.start_lms_link(student_id, password)
        if not started.accepted or self._last_task is None:
            return started
        return await asyncio.shield(self._last_task)

    async def wait_for_link(self) -> LinkOutput | None:
        """Wait for the current attempt. Returns None when nothing is running."""
        attempt = self._attempt
        if attempt is None or attempt.task is None:
            return None
        return await asyncio.shield(attempt.task)

    def cancel_link(self) -> bool:
        attempt = self._attempt
        if attempt is None or attempt.cancel.cancelled:
            return False
        attempt.cancel.cancel()
        logger.info("Cancellation requested for link attempt %d", attempt.id)
        return True

    def unlink(self) -> LinkState:
        phase = self.phase
        if phase is AppPhase.LINKING:
            self.cancel_link()
            return self.link
        if phase is not AppPhase.LINKED:
            return self.link

        self._apply(LinkState())
        if self._store is not None:
            self._store.save(LinkState())
        if self._schedule is not None:
            self._schedule.clear()
        logger.info("Unlinked LMS account for user %s", self.session.user_id)
        return self.link

    async def aclose(self) -> None:
        """Cancel and await any running attempt (shutdown)."""
        self.cancel_link()
        task = self._last_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    # --- Attempt flow ---

    async def _run(
        self, attempt: _LinkAttempt, previous: asyncio.Task[LinkOutput] | None
    ) -> LinkOutput:
        if previous is not None and not previous.done():
            # A stale attempt from before a logout must release the LMS client first
            await asyncio.wait({previous})
        try:
            return await self._link_flow(attempt)
        except asyncio.CancelledError:
            if self._is_current(attempt):
                self._apply(LinkState())
            raise
        except Exception:
            logger.exception("Link attempt %d failed unexpectedly", attempt.id)
            error = LinkError.of(LinkErrorKind.UNEXPECTED)
            if self._is_current(attempt):
                self._end_attempt(attempt, LinkState(error_message=error.message))
            return LinkOutput(state=self.link, error=error)
        finally:
            attempt.credentials = None
            if self._attempt is attempt:
                self._attempt = None

    async def _link_flow(self, attempt: _LinkAttempt) -> LinkOutput:
        credentials = attempt.credentials
        assert credentials is not None
        auth = await self._lms.authenticate(
            credentials.student_id, credentials.password, cancel=attempt.cancel
        )
        attempt.credentials = None
        del credentials

        if not self._is_current(attempt):
            return self._discard(attempt)
        if auth.error is not None:
            if auth.error.kind is LmsAuthErrorKind.CANCELLED:
                return self._cancelled(attempt, auth.error)
            return self._failed(attempt, auth.error)
        if attempt.cancel.cancelled:
            return self._cancelled(attempt, CollectionError.of(CollectionErrorKind.CANCELLED))
        assert auth.token is not None

        result = await self._lms.collect(
            auth.token,
            on_progress=partial(self._on_progress, attempt),
            cancel=attempt.cancel,
        )

        if not self._is_current(attempt):
            return self._discard(attempt)
        if result.error is not None:
            if result.error.kind is CollectionErrorKind.CANCELLED:
                return self._cancelled(attempt, result.error)
            return self._failed(attempt, result.error)
        return self._linked(attempt, result)

    def _on_progress(self, attempt: _LinkAttempt, percent: int) -> None:
        if not self._is_current(attempt):
            return
        current = self.link
        if not current.is_linking or percent <= current.collection_progress:
            return
        self._apply(current.model_copy(update={"collection_progress": min(percent, 100)}))

    def _linked(self, attempt: _LinkAttempt, result: CollectionOutput) -> LinkOutput:
        summary = result.summary
        assert summary is not None
        warnings = result.warning.details if result.warning is not None else ()

        linked = LinkState(
            is_lms_linked=True,
            collection_progress=100,
            warnings=warnings,
            linked_user_id=self.session.user_id,
            linked_at=self._now(),
        )
        self._apply(linked)
        if self._store is not None:
            self._store.save(linked)
        if self._schedule is not None:
            self._schedule.replace_items(summary.items)

        logger.info(
            "Link attempt %d succeeded: %d items from %d courses",
            attempt.id,
            len(summary.items),
            len(summary.courses),
        )
        return LinkOutput(
            state=self.link,
            success=True,
            summary=summary,
            warning=result.warning,
        )

    def _failed(self, attempt: _LinkAttempt, error: LmsAuthError | CollectionError) -> LinkOutput:
        logger.info("Link attempt %d failed: %s", attempt.id, error.kind.value)
        self._end_attempt(attempt, LinkState(error_message=error.message))
        return LinkOutput(state=self.link, error=error)

    def _cancelled(
        self, attempt: _LinkAttempt, error: LmsAuthError | CollectionError
    ) -> LinkOutput:
        # User-initiated, so no error message on the state
        logger.info("Link attempt %d cancelled", attempt.id)
        self._end_attempt(attempt, LinkState())
        return LinkOutput(state=self.link, error=error)

    def _discard(self, attempt: _LinkAttempt) -> LinkOutput:
        logger.info("Discarded result of stale link attempt %d", attempt.id)
        return LinkOutput(state=self.link, error=CollectionError.of(CollectionErrorKind.CANCELLED))

    def _end_attempt(self, attempt: _LinkAttempt, new_state: LinkState) -> None:
        self._apply(new_state)
        if attempt.relink:
            # The previous linkage was given up when the re-link started
            if self._store is not None:
                self._store.save(LinkState())
            if self._schedule is not None:
                self._schedule.clear()

    # --- Helpers ---

    def _restore_linkage(self) -> None:
        if self._store is None:
            return
        persisted = self._store.load()
        user_id = self.session.user_id
        if persisted is None or not persisted.is_lms_linked:
            return
        if persisted.linked_user_id != user_id:
            return
        self._apply(
            LinkState(
                is_lms_linked=True,
                collection_progress=100,
                warnings=persisted.warnings,
                linked_user_id=user_id,
                linked_at=persisted.linked_at,
            )
        )
        logger.info("Restored LMS linkage for user %s", user_id)

    def _apply(self, new_state: LinkState) -> None:
        current = self.phase
        target = derive_phase(self.session, new_state)
        if not can_transition(current, target):
            raise InvalidTransitionError(current, target)
        self._link.set(new_state)
        if current is not target:
            logger.info("Phase %s -> %s", current.value, target.value)

    def _is_current(self, attempt: _LinkAttempt) -> bool:
        return self._attempt is attempt

    def _auth_busy(self, action: str) -> AuthOutput:
        logger.warning("Rejected %s: LMS linking in progress", action)
        return AuthOutput(session=self.session, error=AuthError.of(AuthErrorKind.BUSY))

    def _now(self) -> datetime:
        if self._time is not None:
            return self._time.now_utc()
        return datetime.now(UTC)
