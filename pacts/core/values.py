"""JSON value kinds and coercion of caller data into plain JSON trees."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel


class JsonKind(str, Enum):
    """The six kinds a JSON value can take."""
    object = "object"
    array = "array"
    string = "string"
    number = "number"
    boolean = "boolean"
    null = "null"


KNOWN_TYPES = frozenset(kind.value for kind in JsonKind)


def kind_of(value: Any) -> JsonKind:
    """Return the JSON kind of a parsed value.

    ``bool`` is checked before numbers since it subclasses ``int``.
    """
    if value is None:
        return JsonKind.null
    if isinstance(value, bool):
        return JsonKind.boolean
    if isinstance(value, (int, float)):
        return JsonKind.number
    if isinstance(value, str):
        return JsonKind.string
    if isinstance(value, Mapping):
        return JsonKind.object
    if isinstance(value, (list, tuple)):
        return JsonKind.array
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def matches_type(value: Any, expected: str) -> bool:
    """Check *value* against a schema ``type`` keyword.

    Types outside the six JSON kinds are always satisfied.
    """
    if expected not in KNOWN_TYPES:
        return True
    return kind_of(value) == JsonKind(expected)


def _default(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def to_json_tree(data: Any) -> Any:
    """Coerce arbitrary caller data into dicts, lists, and JSON scalars.

    Pydantic models and dataclasses are dumped; everything else must already
    be JSON-serializable. Raises TypeError or ValueError otherwise.
    """
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return json.loads(json.dumps(data, default=_default, allow_nan=False))
