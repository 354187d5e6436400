"""Schema domain package exports."""

from __future__ import annotations

from . import format_rule_service
from . import schema_model_core
from . import schema_parser_service
from . import schema_validation_core

__all__ = [
    "schema_model_core",
    "schema_parser_service",
    "format_rule_service",
    "schema_validation_core",
]
