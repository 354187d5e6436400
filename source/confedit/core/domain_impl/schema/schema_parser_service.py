"""Schema file parsing and advisory lookups."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from confedit.core import constants as app_constants
from confedit.core.domain_impl.json.json_value_core import from_python
from confedit.core.domain_impl.schema.schema_model_core import PropertyInfo, Schema
from confedit.core.exceptions import SchemaParseError

_LOG = logging.getLogger(__name__)

_STRING_FACETS = {
    "$schema": "schema_uri",
    "title": "title",
    "description": "description",
    "format": "format",
    "pattern": "pattern",
}
_NUMBER_FACETS = {"minimum": "minimum", "maximum": "maximum"}
_LENGTH_FACETS = {"minLength": "min_length", "maxLength": "max_length"}


def _node_label(path: list[str]) -> str:
    return "/".join(["#"] + path)


def _facet_label(path: list[str], facet: str) -> str:
    return f"{_node_label(path)}/{facet}"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_types(raw: Any, path: list[str]) -> tuple[str, ...]:
    names = [raw] if isinstance(raw, str) else raw
    if not isinstance(names, list) or not names:
        raise SchemaParseError(f"{_facet_label(path, 'type')} must be a string or a list of strings")
    types: list[str] = []
    for name in names:
        if not isinstance(name, str):
            raise SchemaParseError(f"{_facet_label(path, 'type')} must be a string or a list of strings")
        normalized = app_constants.SCHEMA_TYPE_ALIASES.get(name.strip().lower())
        if normalized is None:
            raise SchemaParseError(f"{_facet_label(path, 'type')} has unknown type {name!r}")
        if normalized not in types:
            types.append(normalized)
    return tuple(types)


def _build_schema(node: Any, path: list[str]) -> Schema:
    if not isinstance(node, dict):
        raise SchemaParseError(f"{_node_label(path)} must be an object")
    fields: dict[str, Any] = {}

    if "type" in node:
        fields["types"] = _parse_types(node["type"], path)

    for facet, attr in _STRING_FACETS.items():
        if facet in node:
            if not isinstance(node[facet], str):
                raise SchemaParseError(f"{_facet_label(path, facet)} must be a string")
            fields[attr] = node[facet]

    for facet, attr in _NUMBER_FACETS.items():
        if facet in node:
            if not _is_number(node[facet]):
                raise SchemaParseError(f"{_facet_label(path, facet)} must be a number")
            fields[attr] = node[facet]

    for facet, attr in _LENGTH_FACETS.items():
        if facet in node:
            raw = node[facet]
            if not isinstance(raw, int) or isinstance(raw, bool) or raw < 0:
                raise SchemaParseError(f"{_facet_label(path, facet)} must be a non-negative integer")
            fields[attr] = raw

    if "deprecated" in node:
        if not isinstance(node["deprecated"], bool):
            raise SchemaParseError(f"{_facet_label(path, 'deprecated')} must be a boolean")
        fields["deprecated"] = node["deprecated"]

    if "enum" in node:
        if not isinstance(node["enum"], list):
            raise SchemaParseError(f"{_facet_label(path, 'enum')} must be a list")
        fields["enum_values"] = tuple(from_python(value) for value in node["enum"])

    if "default" in node:
        fields["default_value"] = from_python(node["default"])

    if "required" in node:
        required = node["required"]
        if not isinstance(required, list) or not all(isinstance(name, str) for name in required):
            raise SchemaParseError(f"{_facet_label(path, 'required')} must be a list of strings")
        fields["required"] = tuple(dict.fromkeys(required))

    if "properties" in node:
        properties = node["properties"]
        if not isinstance(properties, dict):
            raise SchemaParseError(f"{_facet_label(path, 'properties')} must be an object")
        fields["properties"] = {
            name: _build_schema(child, path + ["properties", name]) for name, child in properties.items()
        }

    if "additionalProperties" in node:
        extra = node["additionalProperties"]
        if isinstance(extra, bool):
            fields["additional_properties"] = extra
        elif isinstance(extra, dict):
            fields["additional_properties"] = _build_schema(extra, path + ["additionalProperties"])
        else:
            raise SchemaParseError(
                f"{_facet_label(path, 'additionalProperties')} must be a boolean or a schema"
            )

    if "items" in node:
        fields["items"] = _build_schema(node["items"], path + ["items"])

    return Schema(**fields)


def parse_schema(data: Any) -> Schema:
    """Parse schema bytes/text (or already decoded data) into a Schema."""
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SchemaParseError("schema file is not UTF-8 text") from exc
    if isinstance(data, str):
        try:
            data = json.loads(data.removeprefix(app_constants.UTF8_BOM))
        except json.JSONDecodeError as exc:
            raise SchemaParseError(
                f"invalid JSON in schema file (line {exc.lineno} column {exc.colno}: {exc.msg})"
            ) from exc
    try:
        return _build_schema(data, [])
    except SchemaParseError:
        raise
    except (ValueError, TypeError) as exc:
        raise SchemaParseError(str(exc)) from exc
    except RecursionError as exc:
        raise SchemaParseError("schema is nested too deeply") from exc


def extract_property_info(schema: Schema, base_path: Iterable[str] = ()) -> dict[str, PropertyInfo]:
    """Flatten declared properties depth-first into ``{dotted path: PropertyInfo}``."""
    result: dict[str, PropertyInfo] = {}
    stack = [(schema, tuple(str(segment) for segment in base_path))]
    while stack:
        parent, parent_path = stack.pop()
        nested = []
        for name, child in parent.properties.items():
            path = parent_path + (name,)
            info = PropertyInfo(
                path=path,
                types=child.types,
                description=child.description,
                title=child.title,
                format=child.format,
                pattern=child.pattern,
                enum_values=child.enum_values,
                is_required=name in parent.required,
                deprecated=child.deprecated,
                minimum=child.minimum,
                maximum=child.maximum,
                min_length=child.min_length,
                max_length=child.max_length,
                default_value=child.default_value,
            )
            result[info.path_string] = info
            if child.properties:
                nested.append((child, path))
        stack.extend(reversed(nested))
    return result


def required_fields(schema: Schema, path: Iterable[str] = ()) -> frozenset[str]:
    target = schema.schema_at(path)
    if target is None:
        return frozenset()
    return frozenset(target.required)


def allows_additional_properties(schema: Schema, path: Iterable[str] = ()) -> bool:
    path = tuple(path)
    target = schema.schema_at(path)
    if target is None:
        _LOG.debug("schema_path_unresolved: %s", ".".join(str(segment) for segment in path))
        return True
    # A schema-valued facet constrains extra members but still allows them.
    return target.additional_properties is not False
