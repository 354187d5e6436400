"""Immutable JSON document snapshots with change tracking.

A document pairs a root object with the text it was loaded from. Edits never
mutate a document; they return a new snapshot (same ``id``) or None when the
edit cannot be resolved, leaving the previous snapshot authoritative.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Iterable, Optional, Protocol, runtime_checkable
from urllib.parse import urlsplit

from confedit.core import constants as app_constants
from confedit.core.domain_impl.json.json_edit_core import (
    EditOperation,
    SetValue,
    apply_operation,
    resolve_path,
)
from confedit.core.domain_impl.json.json_serialize_core import encode_text, serialize_tree
from confedit.core.domain_impl.json.json_value_core import (
    JSONObject,
    JSONValue,
    from_python,
    parse_value_text,
)
from confedit.core.exceptions import InvalidJSONError


@runtime_checkable
class EditableDocument(Protocol):
    """Anything the editor can show and edit as a JSON tree."""

    @property
    def source(self) -> str: ...

    @property
    def content(self) -> JSONObject: ...

    @property
    def original_text(self) -> Optional[str]: ...

    @property
    def has_changes(self) -> bool: ...

    def with_updated_value(self, value: Any, path: Iterable[Any]) -> Optional[EditableDocument]: ...

    def with_updated_content(self, content: Any) -> EditableDocument: ...

    def serialize(self) -> Optional[bytes]: ...


def decode_document_bytes(data: bytes | str) -> str:
    if isinstance(data, str):
        return data
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidJSONError(f"not UTF-8 text ({exc.reason} at byte {exc.start})") from exc


def _as_root_object(content: Any) -> JSONObject:
    root = from_python(content)
    if not isinstance(root, JSONObject):
        raise InvalidJSONError("top-level value must be an object")
    return root


@dataclass(frozen=True, slots=True, eq=False)
class JSONDocument:
    source: str
    content: JSONObject
    original_text: Optional[str] = None
    edited_paths: frozenset[str] = frozenset()
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @classmethod
    def parse(cls, data: bytes | str, source: str = "") -> JSONDocument:
        """Load a document from raw bytes; the root must decode to an object."""
        text = decode_document_bytes(data)
        label = PurePosixPath(urlsplit(str(source)).path).name if source else "document"
        try:
            root = parse_value_text(text.removeprefix(app_constants.UTF8_BOM))
        except InvalidJSONError as exc:
            raise InvalidJSONError(f"{label}: {exc.reason}") from exc
        if not isinstance(root, JSONObject):
            raise InvalidJSONError(f"{label}: top-level value must be an object")
        return cls(source=str(source), content=root, original_text=text)

    @classmethod
    def from_content(cls, content: Any, source: str = "") -> JSONDocument:
        """Build a document programmatically; it has no original text to preserve."""
        return cls(source=str(source), content=_as_root_object(content))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JSONDocument):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def file_name(self) -> str:
        return PurePosixPath(urlsplit(self.source).path).name

    @property
    def name(self) -> str:
        return PurePosixPath(urlsplit(self.source).path).stem

    @property
    def has_changes(self) -> bool:
        if self.original_text is None:
            return False
        text = self.serialize_text()
        return text is not None and text != self.original_text

    def with_operation(self, operation: EditOperation) -> JSONDocument | None:
        """Apply an edit operation; None when it does not resolve against the content."""
        updated = apply_operation(self.content, operation)
        if not isinstance(updated, JSONObject):
            return None
        return JSONDocument(
            source=self.source,
            content=updated,
            original_text=self.original_text,
            edited_paths=self.edited_paths | {operation.touched_path},
            id=self.id,
        )

    def with_updated_value(self, value: Any, path: Iterable[Any]) -> JSONDocument | None:
        return self.with_operation(SetValue(tuple(path), value))

    def with_updated_content(self, content: Any) -> JSONDocument:
        """Replace the whole tree; edited paths reset since their provenance is unknown."""
        return JSONDocument(
            source=self.source,
            content=_as_root_object(content),
            original_text=self.original_text,
            id=self.id,
        )

    def serialize_text(self) -> str | None:
        return serialize_tree(self.content, self.original_text)

    def serialize(self) -> bytes | None:
        return encode_text(self.serialize_text())

    def value_at(self, path: Iterable[Any]) -> JSONValue | None:
        return resolve_path(self.content, path)
