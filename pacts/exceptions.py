"""Exception hierarchy for pacts.

Only configuration problems propagate out of the resolver and validator.
Everything else (missing schemas, malformed documents, unreachable archive
sources) is reported through return values and logging.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pacts.core.result import ValidationResult


class PactsError(Exception):
    """Base exception for pacts."""


class ConfigurationError(PactsError, ValueError):
    """Raised when a resolver is built without schema root, domain, or version."""


class SchemaParseError(PactsError, ValueError):
    """Raised when schema text is not a JSON object."""


class ArchiveEntryTooLargeError(PactsError):
    """Raised when an archive entry exceeds the configured size bound."""

    def __init__(self, entry: str, size: int, limit: int) -> None:
        super().__init__(f"Archive entry {entry} is {size} bytes (limit {limit})")
        self.entry = entry
        self.size = size
        self.limit = limit


class ArchiveLoadError(PactsError):
    """Raised when no configured archive source could be loaded.

    ``failures`` holds one ``(source, reason)`` pair per attempted source.
    """

    def __init__(self, failures: list[tuple[str, str]]) -> None:
        self.failures = list(failures)
        if self.failures:
            detail = "; ".join(f"{src}: {reason}" for src, reason in self.failures)
            message = f"Failed to load schemas from any source ({detail})"
        else:
            message = "No schema archive sources configured"
        super().__init__(message)


class EnvelopeParseError(PactsError, ValueError):
    """Raised when envelope JSON cannot be parsed."""


class EnvelopeValidationError(PactsError):
    """Raised by PactsService.send_validated_data when an envelope is invalid."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__(f"Validation failed: {result.error_message}")
        self.result = result
