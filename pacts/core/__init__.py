"""Pacts core - schema resolution, caching and structural validation.

Core components:
    SchemaDocument       - Immutable parsed schema
    SchemaCache          - Lock-protected key -> document mapping
    RemoteArchiveLoader  - Fetches zip archives of schemas from mirror URLs
    SchemaResolver       - Cache -> filesystem -> bundled -> archive lookup
    Validator            - Required/type/property checks, one level deep
    ValidationResult     - Validity plus ordered error strings
"""

from pacts.core.archive import RemoteArchiveLoader, parse_archive
from pacts.core.cache import SchemaCache, cache_key
from pacts.core.document import SchemaDocument
from pacts.core.resolver import SchemaResolver
from pacts.core.result import ValidationResult
from pacts.core.validator import Validator
from pacts.core.values import JsonKind, kind_of, matches_type

__all__ = [
    "JsonKind",
    "RemoteArchiveLoader",
    "SchemaCache",
    "SchemaDocument",
    "SchemaResolver",
    "ValidationResult",
    "Validator",
    "cache_key",
    "kind_of",
    "matches_type",
    "parse_archive",
]
