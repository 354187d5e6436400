"""Order-preserving JSON serialization.

The edited tree is walked in lock-step with the parse of the original text and
its scanned layout. Subtrees equal to their original counterpart are copied
from the original text byte for byte; only the spans that differ are rendered
again, using the indentation, colon and separator style found around them.
Without an original text the tree is pretty-printed canonically.
"""

from __future__ import annotations

import difflib
import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Sequence

from confedit.core import constants as app_constants
from confedit.core.domain_impl.json.json_layout_core import (
    LayoutNode,
    detect_indent_unit,
    detect_newline,
    line_indent,
    scan_layout,
)
from confedit.core.domain_impl.json.json_value_core import (
    JSONArray,
    JSONBool,
    JSONFloat,
    JSONInt,
    JSONNull,
    JSONObject,
    JSONString,
    JSONValue,
    parse_value_text,
    to_python,
)
from confedit.core.exceptions import EXPECTED_ERRORS, InvalidJSONError

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Baseline:
    """Parsed original text plus the layout facts needed to re-emit it."""

    value: JSONValue
    layout: LayoutNode
    indent_unit: str
    newline: str
    inline_colon: str
    inline_separator: str


@lru_cache(maxsize=app_constants.BASELINE_CACHE_SIZE)
def load_baseline(original_text: str) -> Baseline:
    layout = scan_layout(original_text)
    inline_colon, inline_separator = _inline_style(original_text, layout)
    return Baseline(
        value=parse_value_text(original_text.removeprefix(app_constants.UTF8_BOM)),
        layout=layout,
        indent_unit=detect_indent_unit(original_text),
        newline=detect_newline(original_text),
        inline_colon=inline_colon,
        inline_separator=inline_separator,
    )


def _quote(text: str) -> str:
    rendered = json.dumps(text, ensure_ascii=False)
    try:
        rendered.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates only survive as \u escapes.
        return json.dumps(text)
    return rendered


def render_scalar(value: JSONValue) -> str:
    match value:
        case JSONNull():
            return "null"
        case JSONBool(value=flag):
            return "true" if flag else "false"
        case JSONInt(value=number):
            return str(int(number))
        case JSONFloat(value=number):
            return json.dumps(float(number), allow_nan=False)
        case JSONString(value=text):
            return _quote(text)
    raise TypeError(f"Not a JSON scalar: {type(value).__name__}")


def render_inline(
    value: JSONValue,
    colon: str = app_constants.INLINE_KEY_SEPARATOR,
    separator: str = app_constants.INLINE_ITEM_SEPARATOR,
) -> str:
    """Render a value on one line, the way single-line containers are written."""
    match value:
        case JSONObject(entries=entries):
            if not entries:
                return "{}"
            body = separator.join(
                _quote(key) + colon + render_inline(child, colon, separator) for key, child in entries
            )
            return "{" + body + "}"
        case JSONArray(items=items):
            if not items:
                return "[]"
            return "[" + separator.join(render_inline(item, colon, separator) for item in items) + "]"
    return render_scalar(value)


def render_value(
    value: JSONValue,
    indent: str = "",
    indent_unit: str = app_constants.DEFAULT_INDENT_UNIT,
    newline: str = app_constants.DEFAULT_NEWLINE,
) -> str:
    """Render a value as an indented block whose first line continues the current line."""
    match value:
        case JSONObject(entries=entries):
            if not entries:
                return "{}"
            inner = indent + indent_unit
            lines = [
                f"{inner}{_quote(key)}: {render_value(child, inner, indent_unit, newline)}"
                for key, child in entries
            ]
            return "{" + newline + ("," + newline).join(lines) + newline + indent + "}"
        case JSONArray(items=items):
            if not items:
                return "[]"
            inner = indent + indent_unit
            lines = [f"{inner}{render_value(item, inner, indent_unit, newline)}" for item in items]
            return "[" + newline + ("," + newline).join(lines) + newline + indent + "]"
    return render_scalar(value)


def _align_items(original: Sequence[JSONValue], updated: Sequence[JSONValue]) -> list[int | None]:
    """Map each updated array item to the original index it reuses, if any.

    Runs the matcher keeps in place are taken first, then items that moved are
    paired with an unused equal original, then what is left of replaced runs is
    paired by position so nested edits stay local.
    """
    matched: list[int | None] = [None] * len(updated)
    replaced: list[tuple[int, int, int, int]] = []
    matcher = difflib.SequenceMatcher(None, list(original), list(updated), autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            for offset in range(j2 - j1):
                matched[j1 + offset] = i1 + offset
        elif tag == "replace":
            replaced.append((i1, i2, j1, j2))

    used = {slot for slot in matched if slot is not None}
    spare: dict[JSONValue, list[int]] = {}
    for idx, item in enumerate(original):
        if idx not in used:
            spare.setdefault(item, []).append(idx)
    for pos, item in enumerate(updated):
        if matched[pos] is None and spare.get(item):
            slot = spare[item].pop(0)
            matched[pos] = slot
            used.add(slot)

    for i1, i2, j1, j2 in replaced:
        free = [idx for idx in range(i1, i2) if idx not in used]
        targets = [pos for pos in range(j1, j2) if matched[pos] is None]
        for idx, pos in zip(free, targets):
            matched[pos] = idx
            used.add(idx)
    return matched


def _inline_style(text: str, layout: LayoutNode) -> tuple[str, str]:
    """Find the colon and item separator used by single-line containers in ``text``."""
    colon = separator = None
    pending = [layout]
    while pending and (colon is None or separator is None):
        node = pending.pop()
        if text.find("\n", node.start, node.end) != -1:
            pending.extend(member.value for member in node.members)
            pending.extend(node.elements)
            continue
        if node.members and colon is None:
            first = node.members[0]
            colon = text[first.key_end : first.value.start]
        spans = [(member.key_start, member.value.end) for member in node.members]
        spans = spans or [(element.start, element.end) for element in node.elements]
        if len(spans) >= 2 and separator is None:
            separator = text[spans[0][1] : spans[1][0]]
        pending.extend(member.value for member in node.members)
        pending.extend(node.elements)
    return (
        colon if colon is not None else app_constants.INLINE_KEY_SEPARATOR,
        separator if separator is not None else app_constants.INLINE_ITEM_SEPARATOR,
    )


class _SpanEmitter:
    def __init__(self, text: str, baseline: Baseline) -> None:
        self.text = text
        self.indent_unit = baseline.indent_unit
        self.newline = baseline.newline
        self.inline_colon = baseline.inline_colon
        self.inline_separator = baseline.inline_separator

    def _is_inline(self, node: LayoutNode) -> bool:
        return self.text.find("\n", node.start, node.end) == -1

    def _render(self, value: JSONValue, indent: str, inline: bool) -> str:
        if inline:
            return render_inline(value, self.inline_colon, self.inline_separator)
        return render_value(value, indent, self.indent_unit, self.newline)

    def _separator(
        self,
        spans: list[tuple[int, int]],
        previous: int | None,
        current: int | None,
        inline: bool,
        indent: str,
    ) -> str:
        if previous is not None and current == previous + 1:
            return self.text[spans[previous][1] : spans[current][0]]
        if len(spans) >= 2:
            return self.text[spans[-2][1] : spans[-1][0]]
        if inline:
            return self.inline_separator
        return "," + self.newline + indent

    def emit(self, value: JSONValue, original: JSONValue, node: LayoutNode, inline: bool) -> str:
        if value == original:
            return self.text[node.start : node.end]
        if isinstance(value, JSONObject) and isinstance(original, JSONObject) and node.members:
            return self._emit_object(value, original, node)
        if isinstance(value, JSONArray) and isinstance(original, JSONArray) and node.elements:
            return self._emit_array(value, original, node)
        return self._render(value, line_indent(self.text, node.start), inline)

    def _emit_object(self, value: JSONObject, original: JSONObject, node: LayoutNode) -> str:
        text = self.text
        members = node.members
        # Duplicate keys decode last-wins, so the last occurrence owns the key.
        position = {member.key: idx for idx, member in enumerate(members)}
        current = dict(value.entries)
        baseline = dict(original.entries)
        order = [key for key in dict.fromkeys(member.key for member in members) if key in current]
        order.extend(key for key in current if key not in position)
        if not order:
            return "{}"

        inline = self._is_inline(node)
        first = members[0]
        indent = "" if inline else line_indent(text, first.key_start)
        colon = text[first.key_end : first.value.start]
        spans = [(member.key_start, member.value.end) for member in members]

        parts: list[str] = []
        previous: int | None = None
        for key in order:
            slot = position.get(key)
            child = current[key]
            if slot is None:
                piece = _quote(key) + colon + self._render(child, indent, inline)
            else:
                member = members[slot]
                head = text[member.key_start : member.value.start]
                piece = head + self.emit(child, baseline[key], member.value, inline)
            if parts:
                parts.append(self._separator(spans, previous, slot, inline, indent))
            parts.append(piece)
            previous = slot

        lead = text[node.start + 1 : first.key_start]
        trail = text[members[-1].value.end : node.end - 1]
        return "{" + lead + "".join(parts) + trail + "}"

    def _emit_array(self, value: JSONArray, original: JSONArray, node: LayoutNode) -> str:
        if not value.items:
            return "[]"
        text = self.text
        elements = node.elements
        inline = self._is_inline(node)
        indent = "" if inline else line_indent(text, elements[0].start)
        spans = [(element.start, element.end) for element in elements]
        # New items follow the layout of their non-empty container siblings.
        nested = [element for element in elements if element.members or element.elements]
        item_inline = inline or (bool(nested) and all(self._is_inline(element) for element in nested))

        parts: list[str] = []
        previous: int | None = None
        for item, slot in zip(value.items, _align_items(original.items, value.items)):
            if slot is None:
                piece = self._render(item, indent, item_inline)
            else:
                piece = self.emit(item, original.items[slot], elements[slot], item_inline)
            if parts:
                parts.append(self._separator(spans, previous, slot, inline, indent))
            parts.append(piece)
            previous = slot

        lead = text[node.start + 1 : elements[0].start]
        trail = text[elements[-1].end : node.end - 1]
        return "[" + lead + "".join(parts) + trail + "]"


def serialize_preserving(tree: JSONValue, original_text: str) -> str:
    """Serialize ``tree`` so that regions it shares with ``original_text`` stay byte-identical."""
    baseline = load_baseline(original_text)
    layout = baseline.layout
    emitter = _SpanEmitter(original_text, baseline)
    inline = "\n" not in original_text[layout.start : layout.end]
    body = emitter.emit(tree, baseline.value, layout, inline)
    return original_text[: layout.start] + body + original_text[layout.end :]


def serialize_canonical(
    tree: JSONValue,
    indent: int = app_constants.CANONICAL_INDENT,
    sort_keys: bool = app_constants.CANONICAL_SORT_KEYS,
) -> str:
    """Deterministic pretty print used when there is no original text to follow."""
    data = to_python(tree)
    payload = json.dumps(data, indent=indent, sort_keys=sort_keys, ensure_ascii=False, allow_nan=False)
    try:
        payload.encode("utf-8")
    except UnicodeEncodeError:
        payload = json.dumps(data, indent=indent, sort_keys=sort_keys, allow_nan=False)
    return payload + "\n"


def serialize_tree(
    tree: JSONValue,
    original_text: str | None = None,
    *,
    canonical_indent: int = app_constants.CANONICAL_INDENT,
    sort_keys: bool = app_constants.CANONICAL_SORT_KEYS,
) -> str | None:
    """Serialize a tree, preserving ``original_text`` layout when given; None if unrepresentable."""
    try:
        if original_text is None:
            return serialize_canonical(tree, canonical_indent, sort_keys)
        try:
            return serialize_preserving(tree, original_text)
        except InvalidJSONError as exc:
            _LOG.warning("original text unreadable, using canonical layout: %s", exc.reason)
            return serialize_canonical(tree, canonical_indent, sort_keys)
    except EXPECTED_ERRORS as exc:
        _LOG.debug("expected_error", exc_info=exc)
        return None


def encode_text(text: str | None) -> bytes | None:
    """UTF-8 bytes of serialized text; None when it holds unencodable characters."""
    if text is None:
        return None
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        _LOG.debug("expected_error", exc_info=exc)
        return None
