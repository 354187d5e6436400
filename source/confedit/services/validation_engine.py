"""Schema parsing and validation domain module."""

from __future__ import annotations

from typing import Any

from confedit.core.domain_impl.infra.engine_settings_service import EngineSettings
from confedit.core.domain_impl.schema import format_rule_service
from confedit.core.domain_impl.schema import schema_model_core
from confedit.core.domain_impl.schema import schema_parser_service
from confedit.core.domain_impl.schema import schema_validation_core
from confedit.core.domain_impl.schema.schema_model_core import Schema
from confedit.core.domain_impl.schema.schema_validation_core import ValidationResult


def validate_document(document: Any, schema: Schema, check_formats: bool = True) -> ValidationResult:
    """Validate a document (or a bare JSON value tree) against ``schema``."""
    tree = getattr(document, "content", document)
    return schema_validation_core.validate(tree, schema, check_formats=check_formats)


class ValidationEngine:
    format_rule_service = format_rule_service
    schema_model_core = schema_model_core
    schema_parser_service = schema_parser_service
    schema_validation_core = schema_validation_core
    parse_schema = staticmethod(schema_parser_service.parse_schema)
    validate_document = staticmethod(validate_document)

    def __init__(self, settings: Any = None) -> None:
        self.settings = settings if isinstance(settings, EngineSettings) else EngineSettings()

    def validate(self, document: Any, schema: Schema) -> ValidationResult:
        return validate_document(document, schema, check_formats=self.settings.check_formats)


VALIDATION = ValidationEngine()
