"""JSON path resolution and structural edit operations.

Operations are plain frozen dataclasses. ``apply`` returns a new root or
``None`` when the operation cannot be resolved against the given tree; the
input tree is never modified. Only the containers along the edited path are
rebuilt, every other subtree is shared with the input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from confedit.core import constants as app_constants
from confedit.core.domain_impl.json.json_value_core import (
    JSONArray,
    JSONObject,
    JSONValue,
    from_python,
)

_LOG = logging.getLogger(__name__)

Path = tuple[str, ...]


def normalize_path(path: Iterable[Any]) -> Path:
    """Return path segments as a tuple of strings (ints become index strings)."""
    return tuple(str(segment) for segment in path)


def split_path(dotted: str) -> Path:
    text = str(dotted or "")
    if not text:
        return ()
    return tuple(text.split(app_constants.PATH_SEPARATOR))


def join_path(path: Sequence[str]) -> str:
    return app_constants.PATH_SEPARATOR.join(str(segment) for segment in path)


def parse_index(segment: Any) -> int | None:
    """Parse a non-negative array index segment; None when it is not one."""
    if isinstance(segment, int) and not isinstance(segment, bool):
        return segment if segment >= 0 else None
    text = str(segment)
    if not text.isascii() or not text.isdigit():
        return None
    return int(text)


def _child(node: JSONValue, segment: str) -> JSONValue | None:
    if isinstance(node, JSONObject):
        return node.get(segment)
    if isinstance(node, JSONArray):
        index = parse_index(segment)
        if index is None or index >= len(node):
            return None
        return node[index]
    return None


def _with_child(node: JSONValue, segment: str, child: JSONValue) -> JSONValue:
    if isinstance(node, JSONObject):
        return node.with_member(segment, child)
    index = parse_index(segment)
    return node.with_item(index, child)


def resolve_path(root: JSONValue, path: Iterable[Any]) -> JSONValue | None:
    """Resolve nested value from root by path keys/indexes, None when missing."""
    node = root
    for segment in normalize_path(path):
        node = _child(node, segment)
        if node is None:
            return None
    return node


def update_at(
    root: JSONValue,
    path: Iterable[Any],
    transform: Callable[[JSONValue], Optional[JSONValue]],
) -> JSONValue | None:
    """Replace the node at ``path`` with ``transform(node)`` and rebuild its ancestors.

    Every segment of ``path`` must already exist. Returns None when the path
    does not resolve or ``transform`` declines by returning None.
    """
    trail: list[tuple[JSONValue, str]] = []
    node = root
    for segment in normalize_path(path):
        child = _child(node, segment)
        if child is None:
            return None
        trail.append((node, segment))
        node = child
    updated = transform(node)
    if updated is None:
        return None
    while trail:
        parent, segment = trail.pop()
        updated = _with_child(parent, segment, updated)
    return updated


def _set_child(parent: JSONValue, key: str, value: JSONValue) -> JSONValue | None:
    if isinstance(parent, JSONObject):
        return parent.with_member(key, value)
    if isinstance(parent, JSONArray):
        index = parse_index(key)
        if index is None or index >= len(parent):
            return None
        return parent.with_item(index, value)
    return None


def _delete_member(parent: JSONValue, key: str) -> JSONValue | None:
    if not isinstance(parent, JSONObject) or key not in parent:
        return None
    return parent.without_member(key)


@dataclass(frozen=True, slots=True)
class SetValue:
    path: Path
    value: JSONValue

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))
        object.__setattr__(self, "value", from_python(self.value))

    @property
    def touched_path(self) -> str:
        return join_path(self.path)

    @property
    def description(self) -> str:
        return f"Set value at {join_path(self.path)}"

    def apply(self, root: JSONValue) -> JSONValue | None:
        if not self.path:
            return None
        key = self.path[-1]
        return update_at(root, self.path[:-1], lambda parent: _set_child(parent, key, self.value))


@dataclass(frozen=True, slots=True)
class AddField:
    parent_path: Path
    key: str
    value: JSONValue

    def __post_init__(self) -> None:
        object.__setattr__(self, "parent_path", normalize_path(self.parent_path))
        object.__setattr__(self, "key", str(self.key))
        object.__setattr__(self, "value", from_python(self.value))

    @property
    def touched_path(self) -> str:
        return join_path(self.parent_path + (self.key,))

    @property
    def description(self) -> str:
        return f"Add field at {self.touched_path}"

    def apply(self, root: JSONValue) -> JSONValue | None:
        return SetValue(self.parent_path + (self.key,), self.value).apply(root)


@dataclass(frozen=True, slots=True)
class DeleteField:
    path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))

    @property
    def touched_path(self) -> str:
        return join_path(self.path)

    @property
    def description(self) -> str:
        return f"Delete field at {join_path(self.path)}"

    def apply(self, root: JSONValue) -> JSONValue | None:
        if not self.path:
            return None
        key = self.path[-1]
        return update_at(root, self.path[:-1], lambda parent: _delete_member(parent, key))


@dataclass(frozen=True, slots=True)
class DeleteArrayElement:
    path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))

    @property
    def touched_path(self) -> str:
        return join_path(self.path)

    @property
    def description(self) -> str:
        return f"Delete array element at {join_path(self.path)}"

    def apply(self, root: JSONValue) -> JSONValue | None:
        if len(self.path) < 2:
            return None
        index = parse_index(self.path[-1])
        if index is None:
            return None

        def _remove(array: JSONValue) -> JSONValue | None:
            if not isinstance(array, JSONArray) or index >= len(array):
                return None
            return array.without_index(index)

        return update_at(root, self.path[:-1], _remove)


@dataclass(frozen=True, slots=True)
class InsertArrayElement:
    path: Path
    value: JSONValue
    index: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", normalize_path(self.path))
        object.__setattr__(self, "value", from_python(self.value))

    @property
    def touched_path(self) -> str:
        return join_path(self.path)

    @property
    def description(self) -> str:
        if self.index is None:
            return f"Append array element to {join_path(self.path)}"
        return f"Insert array element at {join_path(self.path)}[{self.index}]"

    def apply(self, root: JSONValue) -> JSONValue | None:
        if not self.path:
            return None

        def _insert(array: JSONValue) -> JSONValue | None:
            if not isinstance(array, JSONArray):
                return None
            if self.index is None:
                return array.inserted(len(array), self.value)
            if not 0 <= self.index <= len(array):
                return None
            return array.inserted(self.index, self.value)

        return update_at(root, self.path, _insert)


@dataclass(frozen=True, slots=True)
class MoveArrayElement:
    array_path: Path
    from_index: int
    to_index: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "array_path", normalize_path(self.array_path))

    @property
    def touched_path(self) -> str:
        return join_path(self.array_path)

    @property
    def description(self) -> str:
        return (
            f"Move array element at {join_path(self.array_path)} "
            f"from [{self.from_index}] to [{self.to_index}]"
        )

    def apply(self, root: JSONValue) -> JSONValue | None:
        if not self.array_path:
            return None

        def _move(array: JSONValue) -> JSONValue | None:
            if not isinstance(array, JSONArray):
                return None
            size = len(array)
            if not (0 <= self.from_index < size and 0 <= self.to_index < size):
                return None
            element = array[self.from_index]
            return array.without_index(self.from_index).inserted(self.to_index, element)

        return update_at(root, self.array_path, _move)


EditOperation = Union[
    SetValue,
    AddField,
    DeleteField,
    DeleteArrayElement,
    InsertArrayElement,
    MoveArrayElement,
]
EDIT_OPERATION_TYPES = (
    SetValue,
    AddField,
    DeleteField,
    DeleteArrayElement,
    InsertArrayElement,
    MoveArrayElement,
)


def apply_operation(root: JSONValue, operation: EditOperation) -> JSONValue | None:
    """Apply one edit operation; None when it does not resolve against ``root``."""
    if not isinstance(operation, EDIT_OPERATION_TYPES):
        raise TypeError(f"Unsupported edit operation: {type(operation).__name__}")
    result = operation.apply(root)
    if result is None:
        _LOG.debug("edit_unresolved: %s", operation.description)
    return result


def apply_operations(root: JSONValue, operations: Iterable[EditOperation]) -> JSONValue | None:
    """Apply operations in order; None as soon as one of them does not resolve."""
    current = root
    for operation in operations:
        current = apply_operation(current, operation)
        if current is None:
            return None
    return current
