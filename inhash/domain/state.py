"""
Linking phase state machine.

The phase is derived from (Session, LinkState) instead of being stored next
to them, so a logged-out user can never be in a linked phase.

State transitions:
- UNAUTHENTICATED → UNLINKED (login/signup)
- UNAUTHENTICATED → LINKED (login restoring a persisted linkage)
- UNLINKED → LINKING (link submitted)
- UNLINKED → LINKED (persisted linkage restored after login)
- LINKING → LINKED (collection succeeded)
- LINKING → UNLINKED (authenticate/collect failed, or cancelled)
- LINKED → LINKING (re-link)
- LINKED → UNLINKED (unlink)
- any → UNAUTHENTICATED (logout)
"""

from __future__ import annotations

from enum import Enum

from inhash.domain.entities import LinkState, Session


class AppPhase(Enum):
    UNAUTHENTICATED = "unauthenticated"
    UNLINKED = "unlinked"
    LINKING = "linking"
    LINKED = "linked"


class Route(Enum):
    """Navigation target the view layer renders for a phase."""

    AUTH = "auth"
    LINK = "link"
    MAIN = "main"


VALID_TRANSITIONS: dict[AppPhase, set[AppPhase]] = {
    AppPhase.UNAUTHENTICATED: {AppPhase.UNLINKED, AppPhase.LINKED},
    AppPhase.UNLINKED: {AppPhase.LINKING, AppPhase.LINKED, AppPhase.UNAUTHENTICATED},
    AppPhase.LINKING: {AppPhase.LINKED, AppPhase.UNLINKED, AppPhase.UNAUTHENTICATED},
    AppPhase.LINKED: {AppPhase.LINKING, AppPhase.UNLINKED, AppPhase.UNAUTHENTICATED},
}

ROUTES: dict[AppPhase, Route] = {
    AppPhase.UNAUTHENTICATED: Route.AUTH,
    AppPhase.UNLINKED: Route.LINK,
    AppPhase.LINKING: Route.LINK,
    AppPhase.LINKED: Route.MAIN,
}


class InvalidTransitionError(RuntimeError):
    def __init__(self, current: AppPhase, target: AppPhase) -> None:
        super().__init__(f"Invalid transition from {current.value} to {target.value}")
        self.current = current
        self.target = target


def derive_phase(session: Session, link: LinkState) -> AppPhase:
    if not session.is_authenticated:
        return AppPhase.UNAUTHENTICATED
    if link.is_linking:
        return AppPhase.LINKING
    if link.is_lms_linked:
        return AppPhase.LINKED
    return AppPhase.UNLINKED


def can_transition(current: AppPhase, target: AppPhase) -> bool:
    """Staying in the same phase is always allowed (e.g. progress updates)."""
    if current == target:
        return True
    return target in VALID_TRANSITIONS.get(current, set())


def route_for(phase: AppPhase) -> Route:
    return ROUTES[phase]
