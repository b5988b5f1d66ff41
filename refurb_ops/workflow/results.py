from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from refurb_ops.core.errors import DomainError


@dataclass
class ValidationResult:
    """Outcome of a rule check: blocking errors and advisory warnings."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def error(self) -> Optional[str]:
        """First error message, or None when valid."""
        return self.errors[0] if self.errors else None

    @property
    def warning(self) -> Optional[str]:
        return self.warnings[0] if self.warnings else None

    # PUBLIC_INTERFACE
    def raise_if_invalid(self) -> None:
        """Raise a DomainError carrying the first message and the full error list."""
        if self.errors:
            raise DomainError(self.errors[0], details={"errors": list(self.errors)})


def ok(*warnings: str) -> ValidationResult:
    return ValidationResult(warnings=list(warnings))


def fail(*errors: str) -> ValidationResult:
    return ValidationResult(errors=list(errors))
