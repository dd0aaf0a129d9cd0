"""Service facade wiring envelope construction, validation and serialization.

Transport layers (message buses, HTTP handlers) talk to this class; they
never need to touch the resolver or validator directly.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pacts.core.resolver import SchemaResolver
from pacts.core.result import ValidationResult
from pacts.core.validator import Validator
from pacts.exceptions import EnvelopeValidationError
from pacts.models import Envelope, Header
from pacts.settings import PactsSettings, get_settings
from pacts.utils import setup_logging

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"

T = TypeVar("T")


class PactsService:
    """Convenience operations over one SchemaResolver."""

    def __init__(self, resolver: SchemaResolver) -> None:
        self.resolver = resolver
        self.validator = Validator(resolver)

    @classmethod
    def from_settings(cls, settings: PactsSettings | None = None) -> PactsService:
        """Build a service (and its resolver) from settings.

        Applies ``log_level``/``log_file`` first. This is a no-op when the
        host application has already configured root logging.
        """
        settings = settings or get_settings()
        setup_logging(settings.log_level, settings.log_file)
        return cls(SchemaResolver.from_settings(settings))

    def create_envelope(
        self,
        category: str,
        name: str,
        data: Any,
        auth_token: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Envelope:
        """Wrap *data* in an envelope addressed to the resolver's version."""
        header = Header(
            schema_version=self.resolver.version,
            schema_category=category,
            schema_name=name,
            content_type=CONTENT_TYPE_JSON,
            auth_token=auth_token,
        )
        return Envelope(header=header, data=data, metadata=metadata)

    def validate(self, envelope: Envelope) -> ValidationResult:
        return self.validator.validate_envelope(envelope)

    def validate_data(self, data: Any, category: str, name: str) -> ValidationResult:
        """Validate bare data against ``category/name`` in the bound domain."""
        schema = self.resolver.load(category, name)
        if schema is None:
            return ValidationResult.failure([
                f"Schema not found: {self.resolver.domain}/{self.resolver.version}/{category}/{name}"
            ])
        return self.validator.validate_data(data, schema)

    def send_validated_data(
        self,
        category: str,
        name: str,
        data: Any,
        sender: Callable[[Envelope], T],
    ) -> T:
        """Build and validate an envelope, then hand it to *sender*.

        Raises EnvelopeValidationError without calling *sender* if invalid.
        """
        envelope = self.create_envelope(category, name, data)
        result = self.validate(envelope)
        if not result.valid:
            logger.warning("Refusing to send %s/%s: %s", category, name, result.error_message)
            raise EnvelopeValidationError(result)
        return sender(envelope)

    @staticmethod
    def to_json(envelope: Envelope) -> str:
        return envelope.to_json()

    @staticmethod
    def parse_envelope(text: str | bytes) -> Envelope:
        return Envelope.from_json(text)
