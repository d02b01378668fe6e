from __future__ import annotations

from dataclasses import dataclass, field

from inhash.domain.entities import Session
from inhash.domain.errors import AuthError, ValidationError


@dataclass(frozen=True)
class AuthOutput:
    session: Session
    success: bool = False
    error: AuthError | None = None
    validation_errors: list[ValidationError] = field(default_factory=list)
