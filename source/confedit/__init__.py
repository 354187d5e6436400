"""Order-preserving JSON document engine.

Collaborators talk to the engine through the boundary functions below; all
bytes are handed in and out by the caller.
"""

from __future__ import annotations

from confedit.core.constants import ENGINE_VERSION
from confedit.core.domain_impl.json.json_document_core import JSONDocument
from confedit.core.domain_impl.json.json_edit_core import (
    AddField,
    DeleteArrayElement,
    DeleteField,
    InsertArrayElement,
    MoveArrayElement,
    SetValue,
)
from confedit.core.domain_impl.schema.schema_parser_service import parse_schema
from confedit.core.exceptions import AppError, InvalidJSONError, SchemaParseError
from confedit.services.json_engine import apply_operation, parse_document, serialize_document
from confedit.services.validation_engine import validate_document

__version__ = ENGINE_VERSION

__all__ = [
    "AddField",
    "AppError",
    "DeleteArrayElement",
    "DeleteField",
    "InsertArrayElement",
    "InvalidJSONError",
    "JSONDocument",
    "MoveArrayElement",
    "SchemaParseError",
    "SetValue",
    "apply_operation",
    "parse_document",
    "parse_schema",
    "serialize_document",
    "validate_document",
]
