"""JSON document parse, edit and serialize domain module."""

from __future__ import annotations

from typing import Any, Optional

from confedit.core.domain_impl.infra.engine_settings_service import EngineSettings
from confedit.core.domain_impl.json import json_diff_core
from confedit.core.domain_impl.json import json_document_core
from confedit.core.domain_impl.json import json_edit_core
from confedit.core.domain_impl.json import json_layout_core
from confedit.core.domain_impl.json import json_serialize_core
from confedit.core.domain_impl.json import json_value_core
from confedit.core.domain_impl.json.json_document_core import JSONDocument
from confedit.core.domain_impl.json.json_edit_core import EditOperation


def parse_document(data: bytes | str, source: str = "") -> JSONDocument:
    """Load a document; raises InvalidJSONError for malformed input or a non-object root."""
    return JSONDocument.parse(data, source)


def apply_operation(document: JSONDocument, operation: EditOperation) -> Optional[JSONDocument]:
    """Apply one edit; None when it does not resolve, leaving ``document`` authoritative."""
    return document.with_operation(operation)


def serialize_document(document: JSONDocument, settings: Optional[EngineSettings] = None) -> Optional[bytes]:
    """Serialize to UTF-8 bytes; canonical layout settings only apply without original text."""
    if settings is None:
        return document.serialize()
    text = json_serialize_core.serialize_tree(
        document.content,
        document.original_text,
        canonical_indent=settings.canonical_indent,
        sort_keys=settings.canonical_sort_keys,
    )
    return json_serialize_core.encode_text(text)


class JsonEngine:
    json_value_core = json_value_core
    json_edit_core = json_edit_core
    json_layout_core = json_layout_core
    json_serialize_core = json_serialize_core
    json_document_core = json_document_core
    json_diff_core = json_diff_core
    parse_document = staticmethod(parse_document)
    apply_operation = staticmethod(apply_operation)
    serialize_document = staticmethod(serialize_document)

    def __init__(self, settings: Any = None) -> None:
        self.settings = settings if isinstance(settings, EngineSettings) else EngineSettings()

    def serialize(self, document: JSONDocument) -> Optional[bytes]:
        return serialize_document(document, self.settings)


JSON_ENGINE = JsonEngine()
