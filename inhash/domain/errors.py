"""
Error taxonomy for the linking core.

Components never raise these: they return them inside their output models.
Each kind maps to a fixed user-visible message.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ValidationError:
    """Field-level validation error. Resolved locally, never sent to a backend."""

    code: str
    message: str
    field: str


class AuthErrorKind(Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    DUPLICATE_ACCOUNT = "duplicate_account"
    NETWORK_ERROR = "network_error"
    BUSY = "busy"


class LmsAuthErrorKind(Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    NETWORK_ERROR = "network_error"
    RATE_LIMITED = "rate_limited"
    CANCELLED = "cancelled"


class CollectionErrorKind(Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    CANCELLED = "cancelled"
    PARTIAL_DATA = "partial_data"
    BUSY = "busy"


class LinkErrorKind(Enum):
    BUSY = "busy"
    NOT_AUTHENTICATED = "not_authenticated"
    UNEXPECTED = "unexpected"


AUTH_MESSAGES: dict[AuthErrorKind, str] = {
    AuthErrorKind.INVALID_CREDENTIALS: "Incorrect email or password.",
    AuthErrorKind.DUPLICATE_ACCOUNT: "An account with this email already exists.",
    AuthErrorKind.NETWORK_ERROR: "Could not reach the server. Check your connection.",
    AuthErrorKind.BUSY: "A sign-in request is already in progress.",
}

LMS_AUTH_MESSAGES: dict[LmsAuthErrorKind, str] = {
    LmsAuthErrorKind.INVALID_CREDENTIALS: "The LMS rejected this student ID or password.",
    LmsAuthErrorKind.NETWORK_ERROR: "Could not reach the LMS. Try again later.",
    LmsAuthErrorKind.RATE_LIMITED: "The LMS is limiting requests. Try again in a few minutes.",
    LmsAuthErrorKind.CANCELLED: "LMS sign-in was cancelled.",
}

COLLECTION_MESSAGES: dict[CollectionErrorKind, str] = {
    CollectionErrorKind.INVALID_CREDENTIALS: "The LMS session was rejected. Link your account again.",
    CollectionErrorKind.RATE_LIMITED: "The LMS is limiting requests. Try again in a few minutes.",
    CollectionErrorKind.NETWORK_ERROR: "Lost connection to the LMS while collecting data.",
    CollectionErrorKind.CANCELLED: "Data collection was cancelled.",
    CollectionErrorKind.PARTIAL_DATA: "Some course sections could not be collected.",
    CollectionErrorKind.BUSY: "Data collection is already running.",
}

LINK_MESSAGES: dict[LinkErrorKind, str] = {
    LinkErrorKind.BUSY: "LMS linking is already in progress.",
    LinkErrorKind.NOT_AUTHENTICATED: "Sign in before linking an LMS account.",
    LinkErrorKind.UNEXPECTED: "Something went wrong while linking. Please try again.",
}


@dataclass(frozen=True)
class AuthError:
    kind: AuthErrorKind
    message: str

    @classmethod
    def of(cls, kind: AuthErrorKind) -> AuthError:
        return cls(kind=kind, message=AUTH_MESSAGES[kind])


@dataclass(frozen=True)
class LmsAuthError:
    kind: LmsAuthErrorKind
    message: str
    attempts: int = 1

    @classmethod
    def of(cls, kind: LmsAuthErrorKind, attempts: int = 1) -> LmsAuthError:
        return cls(kind=kind, message=LMS_AUTH_MESSAGES[kind], attempts=attempts)


@dataclass(frozen=True)
class CollectionError:
    kind: CollectionErrorKind
    message: str
    attempts: int = 1
    details: tuple[str, ...] = ()

    @classmethod
    def of(
        cls,
        kind: CollectionErrorKind,
        attempts: int = 1,
        details: tuple[str, ...] = (),
    ) -> CollectionError:
        return cls(kind=kind, message=COLLECTION_MESSAGES[kind], attempts=attempts, details=details)


@dataclass(frozen=True)
class LinkError:
    kind: LinkErrorKind
    message: str

    @classmethod
    def of(cls, kind: LinkErrorKind) -> LinkError:
        return cls(kind=kind, message=LINK_MESSAGES[kind])
