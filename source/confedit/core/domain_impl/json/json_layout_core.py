"""Span scanner for JSON source text.

Records where every value, object member and array element sits in the
original text so the serializer can copy untouched regions verbatim. The
scanner expects text that already decoded successfully.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from json.decoder import scanstring

from confedit.core import constants as app_constants
from confedit.core.exceptions import InvalidJSONError

_WHITESPACE = " \t\n\r"
_NUMBER_PATTERN = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][-+]?\d+)?")
_LITERALS = ("true", "false", "null")


@dataclass(slots=True)
class LayoutNode:
    """Span of one value; ``end`` is exclusive."""

    kind: str
    start: int
    end: int = 0
    members: list[MemberLayout] = field(default_factory=list)
    elements: list[LayoutNode] = field(default_factory=list)


@dataclass(slots=True)
class MemberLayout:
    key: str
    key_start: int
    key_end: int
    value: LayoutNode


@dataclass(slots=True)
class _OpenContainer:
    """A container whose closing bracket has not been reached yet."""

    node: LayoutNode
    key: str = ""
    key_start: int = 0
    key_end: int = 0


def _skip_whitespace(text: str, idx: int) -> int:
    size = len(text)
    while idx < size and text[idx] in _WHITESPACE:
        idx += 1
    return idx


def _expect(text: str, idx: int, char: str) -> None:
    if idx >= len(text) or text[idx] != char:
        raise InvalidJSONError(f"expected {char!r} at offset {idx}")


def _scan_scalar(text: str, idx: int) -> LayoutNode:
    char = text[idx]
    if char == '"':
        _, end = scanstring(text, idx + 1)
        return LayoutNode("scalar", idx, end)
    match = _NUMBER_PATTERN.match(text, idx)
    if match:
        return LayoutNode("scalar", idx, match.end())
    for literal in _LITERALS:
        if text.startswith(literal, idx):
            return LayoutNode("scalar", idx, idx + len(literal))
    raise InvalidJSONError(f"unexpected character {char!r} at offset {idx}")


def _scan_key(text: str, idx: int, frame: _OpenContainer) -> int:
    """Read ``"key" :`` into ``frame`` and return the offset of the member value."""
    _expect(text, idx, '"')
    frame.key, frame.key_end = scanstring(text, idx + 1)
    frame.key_start = idx
    idx = _skip_whitespace(text, frame.key_end)
    _expect(text, idx, ":")
    return _skip_whitespace(text, idx + 1)


def _scan_value(text: str, idx: int) -> LayoutNode:
    stack: list[_OpenContainer] = []
    while True:
        if idx >= len(text):
            raise InvalidJSONError("unexpected end of text")
        char = text[idx]
        if char in "{[":
            value = LayoutNode("object" if char == "{" else "array", idx)
            idx = _skip_whitespace(text, idx + 1)
            if idx < len(text) and text[idx] == ("}" if char == "{" else "]"):
                value.end = idx + 1
            else:
                stack.append(_OpenContainer(value))
                if char == "{":
                    idx = _scan_key(text, idx, stack[-1])
                continue
        else:
            value = _scan_scalar(text, idx)

        # Attach the finished value, closing every container that ends after it.
        while stack:
            frame = stack[-1]
            node = frame.node
            if node.kind == "object":
                node.members.append(MemberLayout(frame.key, frame.key_start, frame.key_end, value))
            else:
                node.elements.append(value)
            idx = _skip_whitespace(text, value.end)
            if idx < len(text) and text[idx] == ",":
                idx = _skip_whitespace(text, idx + 1)
                if node.kind == "object":
                    idx = _scan_key(text, idx, frame)
                break
            _expect(text, idx, "}" if node.kind == "object" else "]")
            node.end = idx + 1
            stack.pop()
            value = node
        else:
            return value


def scan_layout(text: str) -> LayoutNode:
    """Scan the single top-level value of ``text`` into a span tree."""
    try:
        start = len(app_constants.UTF8_BOM) if text.startswith(app_constants.UTF8_BOM) else 0
        return _scan_value(text, _skip_whitespace(text, start))
    except InvalidJSONError:
        raise
    except ValueError as exc:
        # scanstring reports malformed strings as JSONDecodeError.
        raise InvalidJSONError(str(exc)) from exc


def line_indent(text: str, offset: int) -> str:
    """Return the leading whitespace of the line containing ``offset``."""
    line_start = text.rfind("\n", 0, offset) + 1
    line = text[line_start:offset]
    return line[: len(line) - len(line.lstrip(" \t"))]


def detect_indent_unit(text: str) -> str:
    """Detect one indentation level: a tab, the smallest space indent, or the default."""
    smallest = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        stripped = line.lstrip(" \t")
        leading = line[: len(line) - len(stripped)]
        if not leading:
            continue
        if leading.startswith("\t"):
            return "\t"
        if not smallest or len(leading) < smallest:
            smallest = len(leading)
    if smallest:
        return " " * smallest
    return app_constants.DEFAULT_INDENT_UNIT


def detect_newline(text: str) -> str:
    if "\r\n" in text:
        return "\r\n"
    return app_constants.DEFAULT_NEWLINE
