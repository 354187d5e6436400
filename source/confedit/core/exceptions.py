"""Shared exception classes and expected-error tuple for services/core."""

from __future__ import annotations

from typing import Final


class AppError(Exception):
    """Base class for expected engine-layer failures."""


class InvalidJSONError(AppError, ValueError):
    """Raised when bytes cannot be read as a JSON document with an object root."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid JSON: {reason}")
        self.reason = reason


class SchemaParseError(AppError, ValueError):
    """Raised when a schema file is not valid JSON or not a usable schema."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid schema: {reason}")
        self.reason = reason


EXPECTED_ERRORS: Final = (
    OSError,
    ValueError,
    TypeError,
    RuntimeError,
    AttributeError,
    KeyError,
    IndexError,
    RecursionError,
)
