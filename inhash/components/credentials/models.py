from __future__ import annotations

from dataclasses import dataclass, field

from inhash.domain.errors import ValidationError


@dataclass(frozen=True)
class ValidationOutput:
    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    def codes(self) -> list[str]:
        return [e.code for e in self.errors]
