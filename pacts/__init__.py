"""
Pacts - versioned JSON schema contracts for service-to-service payloads

Resolves domain-scoped schemas from disk, bundled resources and remote
archives, and validates message envelopes against them.
"""

__version__ = "0.1.0"

from pacts.core import (
    SchemaCache,
    SchemaDocument,
    SchemaResolver,
    ValidationResult,
    Validator,
)
from pacts.exceptions import (
    ArchiveLoadError,
    ConfigurationError,
    EnvelopeParseError,
    EnvelopeValidationError,
    PactsError,
    SchemaParseError,
)
from pacts.models import Envelope, Header
from pacts.service import PactsService
from pacts.settings import PactsSettings, get_settings

__all__ = [
    "ArchiveLoadError",
    "ConfigurationError",
    "Envelope",
    "EnvelopeParseError",
    "EnvelopeValidationError",
    "Header",
    "PactsError",
    "PactsService",
    "PactsSettings",
    "SchemaCache",
    "SchemaDocument",
    "SchemaParseError",
    "SchemaResolver",
    "ValidationResult",
    "Validator",
    "get_settings",
]
