from __future__ import annotations

import logging
from dataclasses import dataclass

from inhash.adapters.clock import SystemClock
from inhash.adapters.dev_auth import DevAuthBackend
from inhash.adapters.dev_lms import DevLmsBackend
from inhash.adapters.http import HttpAuthBackend, HttpLmsBackend
from inhash.adapters.link_store import InMemoryLinkStateStore
from inhash.adapters.schedule_store import InMemoryScheduleStore
from inhash.adapters.sqlite_link_store import SQLiteLinkStateStore
from inhash.components.auth import AuthBackendPort, AuthSessionManager
from inhash.components.linking import AccountLinkingOrchestrator, LinkStateStorePort
from inhash.components.lms import LmsBackendPort, LmsLinkClient
from inhash.domain.entities import LinkState, Session
from inhash.domain.observable import StateContainer
from inhash.rules.models import Rules

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@inhash.app"
DEMO_PASSWORD = "password"


@dataclass
class AppContext:
    orchestrator: AccountLinkingOrchestrator
    session_state: StateContainer[Session]
    link_state: StateContainer[LinkState]
    schedule_store: InMemoryScheduleStore
    link_store: LinkStateStorePort
    rules: Rules
    auth_backend: AuthBackendPort
    lms_backend: LmsBackendPort

    @classmethod
    def create(
        cls,
        rules: Rules,
        *,
        db_path: str | None = None,
        auth_backend: AuthBackendPort | None = None,
        lms_backend: LmsBackendPort | None = None,
        link_store: LinkStateStorePort | None = None,
    ) -> AppContext:
        # Adapters
        auth_backend = auth_backend or _default_auth_backend(rules)
        lms_backend = lms_backend or _default_lms_backend(rules)
        if link_store is None:
            link_store = SQLiteLinkStateStore(db_path) if db_path else InMemoryLinkStateStore()
        schedule_store = InMemoryScheduleStore()

        # State
        session_state: StateContainer[Session] = StateContainer(Session)
        link_state: StateContainer[LinkState] = StateContainer(LinkState)

        # Components
        auth = AuthSessionManager(auth_backend, session_state, link_state, rules=rules)
        lms = LmsLinkClient(lms_backend, rules=rules)
        orchestrator = AccountLinkingOrchestrator(
            auth,
            lms,
            session_state,
            link_state,
            store=link_store,
            schedule=schedule_store,
            time=SystemClock(),
            rules=rules,
        )

        return cls(
            orchestrator=orchestrator,
            session_state=session_state,
            link_state=link_state,
            schedule_store=schedule_store,
            link_store=link_store,
            rules=rules,
            auth_backend=auth_backend,
            lms_backend=lms_backend,
        )

    async def aclose(self) -> None:
        """Stop any running link attempt, then release backend connections."""
        await self.orchestrator.aclose()
        for backend in (self.auth_backend, self.lms_backend):
            close = getattr(backend, "aclose", None)
            if close is not None:
                await close()


def _default_auth_backend(rules: Rules) -> AuthBackendPort:
    if rules.backends.auth_base_url:
        return HttpAuthBackend(rules.backends.auth_base_url, timeout=rules.timeouts.auth_seconds)
    logger.info("No auth backend configured, using dev backend (%s)", DEMO_EMAIL)
    backend = DevAuthBackend()
    backend.add_account(DEMO_EMAIL, DEMO_PASSWORD)
    return backend


def _default_lms_backend(rules: Rules) -> LmsBackendPort:
    if rules.backends.lms_base_url:
        return HttpLmsBackend(rules.backends.lms_base_url, timeout=rules.timeouts.lms_fetch_seconds)
    logger.info("No LMS backend configured, using dev backend with sample data")
    return DevLmsBackend.with_sample_data()
