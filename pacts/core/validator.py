"""Structural validation of envelopes and payloads against schema documents.

Only the root value and one level of declared properties are checked:
``required``, root ``type``, and each present property's ``type``.
Validation never raises; every problem ends up in the result's error list.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pacts.core.document import SchemaDocument
from pacts.core.result import ValidationResult
from pacts.core.values import JsonKind, kind_of, matches_type, to_json_tree

if TYPE_CHECKING:
    from pacts.core.resolver import SchemaResolver
    from pacts.models import Envelope

logger = logging.getLogger(__name__)


class Validator:
    """Validate envelopes using schemas from a SchemaResolver."""

    def __init__(self, resolver: SchemaResolver) -> None:
        self.resolver = resolver

    def validate_envelope(self, envelope: Envelope) -> ValidationResult:
        """Validate an envelope's header, then its data against the named schema.

        Error order: header errors, "Schema not found", then data errors.
        """
        errors: list[str] = []

        try:
            header = envelope.header
            if header is None:
                return ValidationResult.failure(["Header is required"])

            category = header.schema_category
            name = header.schema_name
            if not category:
                errors.append("Schema category is required in header")
            if not name:
                errors.append("Schema name is required in header")
            if not header.schema_version:
                errors.append("Schema version is required in header")

            if category and name:
                schema = self.resolver.load(category, name)
                if schema is None:
                    errors.append(f"Schema not found: {category}/{name}")
                else:
                    errors.extend(self.validate_data(envelope.data, schema).errors)
        except Exception as exc:
            logger.exception("Unexpected failure validating envelope")
            errors.append(f"Validation error: {exc}")

        return ValidationResult(tuple(errors))

    validate = validate_envelope

    def validate_data(
        self,
        data: Any,
        schema: SchemaDocument | Mapping[str, Any],
    ) -> ValidationResult:
        """Validate a payload against a single schema document."""
        errors: list[str] = []

        try:
            document = schema if isinstance(schema, SchemaDocument) else SchemaDocument(schema)
            tree = to_json_tree(data)
            is_object = kind_of(tree) == JsonKind.object

            for field_name in document.required:
                if not is_object or field_name not in tree:
                    errors.append(f"Required field missing: {field_name}")

            expected = document.schema_type
            if expected is not None and not matches_type(tree, expected):
                errors.append(f"Invalid type. Expected: {expected}")

            if is_object:
                for prop_name, decl in document.properties.items():
                    if prop_name not in tree:
                        continue
                    prop_type = decl.get("type")
                    if isinstance(prop_type, str) and not matches_type(tree[prop_name], prop_type):
                        errors.append(
                            f"Invalid type for field '{prop_name}'. Expected: {prop_type}"
                        )
        except Exception as exc:
            logger.debug("Data validation aborted: %s", exc)
            errors.append(f"Validation error: {exc}")

        return ValidationResult(tuple(errors))
