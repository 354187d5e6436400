"""Change status and text diff helpers for edited documents."""

from __future__ import annotations

import difflib
import enum
import logging
from typing import Any, Optional

from confedit.core import constants as app_constants
from confedit.core.domain_impl.json.json_edit_core import join_path
from confedit.core.domain_impl.json.json_value_core import (
    JSONArray,
    JSONObject,
    JSONValue,
    parse_value_text,
)
from confedit.core.exceptions import EXPECTED_ERRORS

_LOG = logging.getLogger(__name__)


class ChangeStatus(str, enum.Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


def _mark_deleted(value: JSONValue, path: list[str], changes: dict[str, ChangeStatus]) -> None:
    stack = [(value, path)]
    while stack:
        node, node_path = stack.pop()
        if isinstance(node, JSONObject):
            children = [(key, child) for key, child in node.items()]
        elif isinstance(node, JSONArray):
            children = [(str(idx), child) for idx, child in enumerate(node)]
        else:
            continue
        for segment, child in children:
            child_path = node_path + [segment]
            changes[join_path(child_path)] = ChangeStatus.DELETED
            stack.append((child, child_path))


def compute_changes(current: JSONValue, original: Optional[JSONValue]) -> dict[str, ChangeStatus]:
    """Map dotted leaf paths to their change status; unchanged paths are omitted.

    Containers are walked, only leaves are reported as added or modified, and a
    removed subtree is reported as deleted at every path inside it. Without an
    original (a file that is new to the repository) nothing is reported.
    """
    if original is None:
        return {}
    changes: dict[str, ChangeStatus] = {}
    stack: list[tuple[JSONValue, Optional[JSONValue], list[str]]] = [(current, original, [])]
    while stack:
        value, before, path = stack.pop()
        if isinstance(value, JSONObject):
            before_obj = before if isinstance(before, JSONObject) else None
            for key, child in value.items():
                previous = before_obj.get(key) if before_obj is not None else None
                stack.append((child, previous, path + [key]))
            if before_obj is not None:
                for key, child in before_obj.items():
                    if key not in value:
                        changes[join_path(path + [key])] = ChangeStatus.DELETED
                        _mark_deleted(child, path + [key], changes)
            continue
        if isinstance(value, JSONArray):
            before_arr = before if isinstance(before, JSONArray) else None
            for idx, child in enumerate(value):
                previous = before_arr[idx] if before_arr is not None and idx < len(before_arr) else None
                stack.append((child, previous, path + [str(idx)]))
            if before_arr is not None:
                for idx in range(len(value), len(before_arr)):
                    changes[join_path(path + [str(idx)])] = ChangeStatus.DELETED
                    _mark_deleted(before_arr[idx], path + [str(idx)], changes)
            continue
        if not path:
            continue
        if before is None:
            changes[join_path(path)] = ChangeStatus.ADDED
        elif value != before:
            changes[join_path(path)] = ChangeStatus.MODIFIED
    return changes


def document_changes(document: Any) -> dict[str, ChangeStatus]:
    """Compare a document's content against the parse of its original text."""
    original_text = getattr(document, "original_text", None)
    if original_text is None:
        return {}
    try:
        original = parse_value_text(original_text.removeprefix(app_constants.UTF8_BOM))
    except EXPECTED_ERRORS as exc:
        _LOG.debug("expected_error", exc_info=exc)
        return {}
    return compute_changes(document.content, original)


def unified_diff_text(original: str, updated: str, source: str = "document") -> str:
    """Build a unified diff suitable for a review preview."""
    lines = difflib.unified_diff(
        original.splitlines(keepends=True),
        updated.splitlines(keepends=True),
        fromfile=f"a/{source}",
        tofile=f"b/{source}",
    )
    return "".join(lines)


def count_changed_lines(original: str, updated: str) -> int:
    """Count removed plus added lines between two texts."""
    matcher = difflib.SequenceMatcher(None, original.splitlines(), updated.splitlines(), autojunk=False)
    changed = 0
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag != "equal":
            changed += (i2 - i1) + (j2 - j1)
    return changed
