"""Pydantic v2 models for the envelope wire format."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pacts.exceptions import EnvelopeParseError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Header(BaseModel):
    """Identifies the schema an envelope's data claims to conform to."""

    model_config = ConfigDict(extra="ignore")

    schema_version: str | None = None
    schema_category: str | None = None
    schema_name: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    content_type: str | None = None
    auth_token: str | None = None


class Envelope(BaseModel):
    """Header + arbitrary JSON data + optional metadata.

    The header is optional at the model level so that a headerless envelope
    can be parsed and then rejected by the validator with a clear message.
    """

    model_config = ConfigDict(extra="ignore")

    header: Header | None = None
    data: Any = None
    metadata: dict[str, Any] | None = None

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, text: str | bytes) -> Envelope:
        """Parse wire JSON. Raises EnvelopeParseError if malformed."""
        try:
            return cls.model_validate_json(text)
        except ValidationError as exc:
            raise EnvelopeParseError(f"Invalid envelope JSON: {exc}") from exc
