"""Schema validation for JSON value trees.

Validation never raises and never stops at the first finding: every node of
the tree is checked and all errors and warnings are returned in walk order.
"""

from __future__ import annotations

import enum
import logging
import re
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Mapping, Optional, Sequence

from confedit.core import constants as app_constants
from confedit.core.domain_impl.json.json_edit_core import resolve_path
from confedit.core.domain_impl.json.json_value_core import (
    JSONArray,
    JSONBool,
    JSONFloat,
    JSONInt,
    JSONNull,
    JSONObject,
    JSONString,
    JSONValue,
    json_type_name,
)
from confedit.core.domain_impl.schema.format_rule_service import matches_format
from confedit.core.domain_impl.schema.schema_model_core import PropertyInfo, Schema

_LOG = logging.getLogger(__name__)


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"


class ErrorCode(str, enum.Enum):
    TYPE_MISMATCH = "typeMismatch"
    REQUIRED_FIELD_MISSING = "requiredFieldMissing"
    INVALID_FORMAT = "invalidFormat"
    PATTERN_MISMATCH = "patternMismatch"
    ENUM_VIOLATION = "enumViolation"
    MINIMUM_VIOLATION = "minimumViolation"
    MAXIMUM_VIOLATION = "maximumViolation"
    MIN_LENGTH_VIOLATION = "minLengthViolation"
    MAX_LENGTH_VIOLATION = "maxLengthViolation"
    ADDITIONAL_PROPERTY_NOT_ALLOWED = "additionalPropertyNotAllowed"
    DEPRECATED = "deprecated"
    OTHER = "other"


def format_number(number: float) -> str:
    if isinstance(number, float) and number.is_integer():
        return str(int(number))
    return str(number)


def _display_enum_value(value: JSONValue) -> str | None:
    match value:
        case JSONString(value=text):
            return text
        case JSONInt(value=number) | JSONFloat(value=number):
            return format_number(number)
        case JSONBool(value=flag):
            return "true" if flag else "false"
        case JSONNull():
            return "null"
    return None


@dataclass(frozen=True, slots=True)
class ValidationError:
    path: tuple[str, ...]
    message: str
    severity: Severity
    code: ErrorCode = ErrorCode.OTHER
    id: uuid.UUID = field(default_factory=uuid.uuid4, compare=False)

    @property
    def path_string(self) -> str:
        if not self.path:
            return app_constants.ROOT_PATH_LABEL
        return app_constants.PATH_SEPARATOR.join(self.path)

    @classmethod
    def type_mismatch(cls, path: Sequence[str], expected: str, actual: str) -> ValidationError:
        message = f"Type mismatch: expected {expected}, got {actual}"
        return cls(tuple(path), message, Severity.ERROR, ErrorCode.TYPE_MISMATCH)

    @classmethod
    def required_field_missing(cls, path: Sequence[str], field_name: str) -> ValidationError:
        message = f"Missing required field: {field_name}"
        return cls(tuple(path), message, Severity.ERROR, ErrorCode.REQUIRED_FIELD_MISSING)

    @classmethod
    def invalid_format(cls, path: Sequence[str], format_name: str, value: str) -> ValidationError:
        message = f"Invalid {format_name} format: {value}"
        return cls(tuple(path), message, Severity.WARNING, ErrorCode.INVALID_FORMAT)

    @classmethod
    def pattern_mismatch(cls, path: Sequence[str], pattern: str) -> ValidationError:
        message = f"Value does not match pattern: {pattern}"
        return cls(tuple(path), message, Severity.ERROR, ErrorCode.PATTERN_MISMATCH)

    @classmethod
    def enum_violation(cls, path: Sequence[str], allowed_values: Iterable[str]) -> ValidationError:
        allowed = ", ".join(allowed_values)
        return cls(tuple(path), f"Value must be one of: {allowed}", Severity.ERROR, ErrorCode.ENUM_VIOLATION)

    @classmethod
    def minimum_violation(cls, path: Sequence[str], minimum: float, actual: float) -> ValidationError:
        message = f"Value {format_number(actual)} is less than minimum {format_number(minimum)}"
        return cls(tuple(path), message, Severity.ERROR, ErrorCode.MINIMUM_VIOLATION)

    @classmethod
    def maximum_violation(cls, path: Sequence[str], maximum: float, actual: float) -> ValidationError:
        message = f"Value {format_number(actual)} exceeds maximum {format_number(maximum)}"
        return cls(tuple(path), message, Severity.ERROR, ErrorCode.MAXIMUM_VIOLATION)

    @classmethod
    def min_length_violation(cls, path: Sequence[str], min_length: int, actual: int) -> ValidationError:
        message = f"Length {actual} is less than minimum {min_length}"
        return cls(tuple(path), message, Severity.ERROR, ErrorCode.MIN_LENGTH_VIOLATION)

    @classmethod
    def max_length_violation(cls, path: Sequence[str], max_length: int, actual: int) -> ValidationError:
        message = f"Length {actual} exceeds maximum {max_length}"
        return cls(tuple(path), message, Severity.ERROR, ErrorCode.MAX_LENGTH_VIOLATION)

    @classmethod
    def additional_property_not_allowed(cls, path: Sequence[str], property_name: str) -> ValidationError:
        return cls(
            tuple(path),
            f"Additional property not allowed: {property_name}",
            Severity.WARNING,
            ErrorCode.ADDITIONAL_PROPERTY_NOT_ALLOWED,
        )

    @classmethod
    def deprecated(cls, path: Sequence[str]) -> ValidationError:
        return cls(tuple(path), "This field is deprecated", Severity.WARNING, ErrorCode.DEPRECATED)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    errors: tuple[ValidationError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not any(error.severity is Severity.ERROR for error in self.errors)

    @property
    def error_count(self) -> int:
        return sum(1 for error in self.errors if error.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for error in self.errors if error.severity is Severity.WARNING)

    @property
    def errors_by_path(self) -> dict[str, list[ValidationError]]:
        grouped: dict[str, list[ValidationError]] = {}
        for error in self.errors:
            grouped.setdefault(error.path_string, []).append(error)
        return grouped

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    @classmethod
    def failure(
        cls,
        path: Sequence[str],
        message: str,
        severity: Severity = Severity.ERROR,
    ) -> ValidationResult:
        return cls((ValidationError(tuple(path), message, severity),))


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> Optional[re.Pattern[str]]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        _LOG.debug("schema_pattern_skipped: %r", pattern, exc_info=exc)
        return None


def _number_of(value: JSONValue) -> float | None:
    if isinstance(value, (JSONInt, JSONFloat)):
        return value.value
    return None


def enum_matches(value: JSONValue, expected: JSONValue) -> bool:
    """Compare a value with one enum entry; numbers compare across int/float."""
    expected_number = _number_of(expected)
    if expected_number is not None:
        actual = _number_of(value)
        return actual is not None and actual == expected_number
    if isinstance(expected, JSONArray):
        if not isinstance(value, JSONArray) or len(value) != len(expected):
            return False
        return all(enum_matches(item, want) for item, want in zip(value, expected))
    if isinstance(expected, JSONObject):
        if not isinstance(value, JSONObject) or len(value) != len(expected):
            return False
        for key, want in expected.items():
            actual_child = value.get(key)
            if actual_child is None or not enum_matches(actual_child, want):
                return False
        return True
    return value == expected


def _type_compatible(actual: str, allowed: Sequence[str]) -> bool:
    return actual in allowed or (actual == "integer" and "number" in allowed)


def _check_facets(
    value: JSONValue,
    facets: Schema | PropertyInfo,
    path: tuple[str, ...],
    errors: list[ValidationError],
    check_formats: bool,
) -> None:
    """Run the per-node checks shared by schema trees and flattened property tables."""
    if facets.deprecated:
        errors.append(ValidationError.deprecated(path))

    if facets.enum_values is not None:
        if not any(enum_matches(value, candidate) for candidate in facets.enum_values):
            allowed = [text for text in map(_display_enum_value, facets.enum_values) if text is not None]
            errors.append(ValidationError.enum_violation(path, allowed))

    if facets.types:
        actual = json_type_name(value)
        if not _type_compatible(actual, facets.types):
            errors.append(ValidationError.type_mismatch(path, " or ".join(facets.types), actual))

    match value:
        case JSONString(value=text):
            if facets.pattern is not None:
                compiled = _compile_pattern(facets.pattern)
                if compiled is not None and compiled.search(text) is None:
                    errors.append(ValidationError.pattern_mismatch(path, facets.pattern))
            if check_formats and facets.format is not None and not matches_format(text, facets.format):
                errors.append(ValidationError.invalid_format(path, facets.format, text))
            _check_length(len(text), facets, path, errors)
        case JSONInt(value=number) | JSONFloat(value=number):
            if facets.minimum is not None and number < facets.minimum:
                errors.append(ValidationError.minimum_violation(path, facets.minimum, number))
            if facets.maximum is not None and number > facets.maximum:
                errors.append(ValidationError.maximum_violation(path, facets.maximum, number))


def _check_length(
    size: int,
    facets: Schema | PropertyInfo,
    path: tuple[str, ...],
    errors: list[ValidationError],
) -> None:
    if facets.min_length is not None and size < facets.min_length:
        errors.append(ValidationError.min_length_violation(path, facets.min_length, size))
    if facets.max_length is not None and size > facets.max_length:
        errors.append(ValidationError.max_length_violation(path, facets.max_length, size))


def _validate_node(
    value: JSONValue,
    schema: Schema,
    path: tuple[str, ...],
    errors: list[ValidationError],
    check_formats: bool,
) -> None:
    _check_facets(value, schema, path, errors, check_formats)

    if isinstance(value, JSONObject):
        for name in schema.required:
            if name not in value:
                errors.append(ValidationError.required_field_missing(path, name))
        for key, child in value.items():
            declared = schema.properties.get(key)
            if declared is not None:
                _validate_node(child, declared, path + (key,), errors, check_formats)
            elif schema.additional_properties is False:
                errors.append(ValidationError.additional_property_not_allowed(path, key))
            elif isinstance(schema.additional_properties, Schema):
                _validate_node(child, schema.additional_properties, path + (key,), errors, check_formats)
    elif isinstance(value, JSONArray):
        _check_length(len(value), schema, path, errors)
        if schema.items is not None:
            for idx, item in enumerate(value):
                _validate_node(item, schema.items, path + (str(idx),), errors, check_formats)


def validate(tree: JSONValue, schema: Schema, check_formats: bool = True) -> ValidationResult:
    """Validate a whole tree against a schema, collecting every finding."""
    errors: list[ValidationError] = []
    try:
        _validate_node(tree, schema, (), errors, check_formats)
    except RecursionError as exc:
        _LOG.debug("expected_error", exc_info=exc)
        errors.append(ValidationError((), "Document is nested too deeply to validate", Severity.ERROR))
    return ValidationResult(tuple(errors))


def validate_with_property_info(
    tree: JSONValue,
    table: Mapping[str, PropertyInfo],
    check_formats: bool = True,
) -> ValidationResult:
    """Validate against a flattened property table instead of a schema tree.

    Required members are only reported when their parent object exists; facet
    checks run on every present value.
    """
    errors: list[ValidationError] = []
    for info in table.values():
        parent_path = info.path[:-1]
        parent = resolve_path(tree, parent_path)
        if not isinstance(parent, JSONObject):
            continue
        name = info.path[-1]
        if name not in parent:
            if info.is_required:
                errors.append(ValidationError.required_field_missing(parent_path, name))
            continue
        value = parent[name]
        _check_facets(value, info, info.path, errors, check_formats)
        if isinstance(value, JSONArray):
            _check_length(len(value), info, info.path, errors)
    return ValidationResult(tuple(errors))