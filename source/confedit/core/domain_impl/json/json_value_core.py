"""Immutable tagged-union model for JSON values.

Every tree handled by the engine is built from the variants below. Containers
own their children as tuples, so a tree can be shared between snapshots without
copying and can never contain a reference cycle.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Iterator, Union

from confedit.core.exceptions import InvalidJSONError


@dataclass(frozen=True, slots=True)
class JSONNull:
    pass


@dataclass(frozen=True, slots=True)
class JSONBool:
    value: bool


@dataclass(frozen=True, slots=True)
class JSONInt:
    value: int


@dataclass(frozen=True, slots=True)
class JSONFloat:
    value: float


@dataclass(frozen=True, slots=True)
class JSONString:
    value: str


@dataclass(frozen=True, slots=True, eq=False)
class JSONArray:
    items: tuple[JSONValue, ...] = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JSONArray):
            return NotImplemented
        return values_equal(self, other)

    def __hash__(self) -> int:
        return hash(tuple(_shallow_key(item) for item in self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[JSONValue]:
        return iter(self.items)

    def __getitem__(self, index: int) -> JSONValue:
        return self.items[index]

    def with_item(self, index: int, value: JSONValue) -> JSONArray:
        items = list(self.items)
        items[index] = value
        return JSONArray(tuple(items))

    def without_index(self, index: int) -> JSONArray:
        return JSONArray(self.items[:index] + self.items[index + 1 :])

    def inserted(self, index: int, value: JSONValue) -> JSONArray:
        return JSONArray(self.items[:index] + (value,) + self.items[index:])


@dataclass(frozen=True, slots=True, eq=False)
class JSONObject:
    """Ordered mapping of unique member names to values.

    Equality follows mapping semantics (member order is ignored) while the
    stored order drives serialization.
    """

    entries: tuple[tuple[str, JSONValue], ...] = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JSONObject):
            return NotImplemented
        return values_equal(self, other)

    def __hash__(self) -> int:
        return hash(frozenset((name, _shallow_key(value)) for name, value in self.entries))

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self.entries)

    def __getitem__(self, key: str) -> JSONValue:
        for name, value in self.entries:
            if name == key:
                return value
        raise KeyError(key)

    def get(self, key: str, default: Any = None) -> Any:
        for name, value in self.entries:
            if name == key:
                return value
        return default

    def keys(self) -> list[str]:
        return [name for name, _ in self.entries]

    def items(self) -> tuple[tuple[str, JSONValue], ...]:
        return self.entries

    def with_member(self, key: str, value: JSONValue) -> JSONObject:
        """Replace an existing member in place or append a new one at the end."""
        entries = list(self.entries)
        for idx, (name, _) in enumerate(entries):
            if name == key:
                entries[idx] = (key, value)
                return JSONObject(tuple(entries))
        entries.append((key, value))
        return JSONObject(tuple(entries))

    def without_member(self, key: str) -> JSONObject:
        return JSONObject(tuple((name, value) for name, value in self.entries if name != key))


JSONValue = Union[JSONNull, JSONBool, JSONInt, JSONFloat, JSONString, JSONArray, JSONObject]
JSON_VALUE_TYPES = (JSONNull, JSONBool, JSONInt, JSONFloat, JSONString, JSONArray, JSONObject)

JSON_NULL = JSONNull()

_PYTHON_CONTAINERS = (dict, list, tuple)


def _shallow_key(value: JSONValue) -> Any:
    # Containers hash by kind and size only, keeping hashing flat for deep trees.
    if isinstance(value, JSONObject):
        return ("object", len(value.entries))
    if isinstance(value, JSONArray):
        return ("array", len(value.items))
    return value


def values_equal(left: JSONValue, right: JSONValue) -> bool:
    """Structural equality without recursion; object member order is ignored."""
    pending = [(left, right)]
    while pending:
        first, second = pending.pop()
        if first is second:
            continue
        if isinstance(first, JSONObject):
            if not isinstance(second, JSONObject) or len(first.entries) != len(second.entries):
                return False
            others = dict(second.entries)
            for name, child in first.entries:
                if name not in others:
                    return False
                pending.append((child, others[name]))
        elif isinstance(first, JSONArray):
            if not isinstance(second, JSONArray) or len(first.items) != len(second.items):
                return False
            pending.extend(zip(first.items, second.items))
        elif first != second:
            return False
    return True


def _scalar_from_python(obj: Any) -> JSONValue:
    if isinstance(obj, JSON_VALUE_TYPES):
        return obj
    if obj is None:
        return JSON_NULL
    # bool is a subclass of int, so it is matched first.
    if isinstance(obj, bool):
        return JSONBool(obj)
    if isinstance(obj, int):
        return JSONInt(int(obj))
    if isinstance(obj, float):
        if not math.isfinite(obj):
            raise ValueError(f"Non-finite float is not representable in JSON: {obj!r}")
        return JSONFloat(obj)
    if isinstance(obj, str):
        return JSONString(obj)
    raise TypeError(f"Unsupported JSON value type: {type(obj).__name__}")


def _children(obj: Any) -> Iterator[tuple[Any, Any]]:
    if isinstance(obj, dict):
        for key, value in obj.items():
            if not isinstance(key, str):
                raise TypeError(f"JSON object keys must be strings, got {type(key).__name__}")
            yield key, value
    else:
        for item in obj:
            yield None, item


def from_python(obj: Any) -> JSONValue:
    """Convert decoded Python data (dict/list/str/int/float/bool/None) to a JSONValue.

    Containers are converted with an explicit stack, so nesting depth is not
    limited by the interpreter's recursion limit.
    """
    if not isinstance(obj, _PYTHON_CONTAINERS):
        return _scalar_from_python(obj)
    # Each frame: source container, its child iterator, converted (key, value) pairs.
    frames = [(obj, _children(obj), [])]
    while True:
        source, children, built = frames[-1]
        for key, child in children:
            if isinstance(child, _PYTHON_CONTAINERS):
                built.append((key, None))
                frames.append((child, _children(child), []))
                break
            built.append((key, _scalar_from_python(child)))
        else:
            frames.pop()
            if isinstance(source, dict):
                node: JSONValue = JSONObject(tuple(built))
            else:
                node = JSONArray(tuple(value for _, value in built))
            if not frames:
                return node
            parent = frames[-1][2]
            parent[-1] = (parent[-1][0], node)


def to_python(value: JSONValue) -> Any:
    match value:
        case JSONNull():
            return None
        case JSONBool(value=flag):
            return flag
        case JSONInt(value=number) | JSONFloat(value=number):
            return number
        case JSONString(value=text):
            return text
        case JSONArray(items=items):
            return [to_python(item) for item in items]
        case JSONObject(entries=entries):
            return {key: to_python(child) for key, child in entries}
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")


def json_type_name(value: JSONValue) -> str:
    """Return the JSON Schema type name of a value."""
    match value:
        case JSONNull():
            return "null"
        case JSONBool():
            return "boolean"
        case JSONInt():
            return "integer"
        case JSONFloat():
            return "number"
        case JSONString():
            return "string"
        case JSONArray():
            return "array"
        case JSONObject():
            return "object"
    return "unknown"


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Unsupported JSON constant: {token}")


def _parse_finite_float(token: str) -> float:
    number = float(token)
    if not math.isfinite(number):
        raise ValueError(f"Number out of range: {token}")
    return number


def parse_value_text(text: str) -> JSONValue:
    """Strictly decode JSON text into a JSONValue tree."""
    try:
        decoded = json.loads(text, parse_float=_parse_finite_float, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise InvalidJSONError(f"line {exc.lineno} column {exc.colno}: {exc.msg}") from exc
    except (ValueError, RecursionError) as exc:
        raise InvalidJSONError(str(exc)) from exc
    return from_python(decoded)
