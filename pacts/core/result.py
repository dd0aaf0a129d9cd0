"""Outcome of a validation call."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

SUCCESS_MESSAGE = "Validation successful"


@dataclass(frozen=True)
class ValidationResult:
    """Validity plus the errors found, in detection order.

    ``valid`` is derived from ``errors`` so the two can never disagree.
    """

    errors: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "errors", tuple(self.errors))

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    @classmethod
    def failure(cls, errors: Iterable[str]) -> ValidationResult:
        return cls(tuple(errors))

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_message(self) -> str:
        if not self.errors:
            return SUCCESS_MESSAGE
        return "; ".join(self.errors)

    def merged(self, other: ValidationResult) -> ValidationResult:
        """Return a result holding this result's errors followed by *other*'s."""
        return ValidationResult(self.errors + other.errors)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors)}
