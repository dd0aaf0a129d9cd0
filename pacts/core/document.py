"""Immutable parsed schema documents."""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from typing import IO, Any

from pacts.exceptions import SchemaParseError


class SchemaDocument:
    """A parsed schema with accessors for ``type``, ``required`` and ``properties``.

    The raw tree is deep-copied on the way in and on the way out, so a
    document shared from the cache cannot be mutated by callers.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: Mapping[str, Any]) -> None:
        if not isinstance(raw, Mapping):
            raise SchemaParseError(
                f"Schema root must be a JSON object, got {type(raw).__name__}"
            )
        object.__setattr__(self, "_raw", copy.deepcopy(dict(raw)))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("SchemaDocument is immutable")

    def __copy__(self) -> SchemaDocument:
        return self

    def __deepcopy__(self, memo: dict) -> SchemaDocument:
        return self

    # -- Constructors ---------------------------------------------------------

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SchemaDocument:
        return cls(raw)

    @classmethod
    def from_json(cls, text: str | bytes) -> SchemaDocument:
        """Parse schema JSON text. Raises SchemaParseError if malformed."""
        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SchemaParseError(f"Invalid schema JSON: {exc}") from exc
        except RecursionError as exc:
            raise SchemaParseError("Schema JSON is nested too deeply") from exc
        try:
            return cls(raw)
        except RecursionError as exc:
            raise SchemaParseError("Schema JSON is nested too deeply") from exc

    @classmethod
    def from_stream(cls, stream: IO[str] | IO[bytes]) -> SchemaDocument:
        return cls.from_json(stream.read())

    # -- Accessors ------------------------------------------------------------

    @property
    def schema_type(self) -> str | None:
        value = self._raw.get("type")
        return value if isinstance(value, str) else None

    @property
    def required(self) -> tuple[str, ...]:
        value = self._raw.get("required")
        if not isinstance(value, list):
            return ()
        return tuple(field for field in value if isinstance(field, str))

    @property
    def properties(self) -> dict[str, dict[str, Any]]:
        value = self._raw.get("properties")
        if not isinstance(value, dict):
            return {}
        return {
            name: copy.deepcopy(decl) if isinstance(decl, dict) else {}
            for name, decl in value.items()
        }

    def property_type(self, name: str) -> str | None:
        decl = self.properties.get(name, {})
        value = decl.get("type")
        return value if isinstance(value, str) else None

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._raw)

    # -- Dunder ---------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaDocument):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(json.dumps(self._raw, sort_keys=True, default=str))

    def __repr__(self) -> str:
        return (
            f"SchemaDocument(type={self.schema_type!r}, "
            f"required={list(self.required)!r}, "
            f"properties={list(self.properties)!r})"
        )
