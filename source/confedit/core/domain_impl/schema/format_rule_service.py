"""String format checks for the ``format`` schema facet."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Callable
from urllib.parse import urlsplit

from confedit.core import constants as app_constants

_EMAIL_RE = re.compile(app_constants.EMAIL_FORMAT_PATTERN)
_TIME_RE = re.compile(app_constants.TIME_FORMAT_PATTERN)
_DATE_TIME_RE = re.compile(app_constants.DATE_TIME_FORMAT_PATTERN)
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def is_uri(value: str) -> bool:
    if not value or any(char.isspace() for char in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme)


def is_email(value: str) -> bool:
    return _EMAIL_RE.fullmatch(value) is not None


def is_date_time(value: str) -> bool:
    if _DATE_TIME_RE.fullmatch(value) is None:
        return False
    text = value.replace("t", "T")
    if text[-1] in "zZ":
        text = text[:-1] + "+00:00"
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def is_date(value: str) -> bool:
    if _DATE_RE.fullmatch(value) is None:
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_time(value: str) -> bool:
    return _TIME_RE.fullmatch(value) is not None


FORMAT_RULES: dict[str, Callable[[str], bool]] = {
    "uri": is_uri,
    "url": is_uri,
    "email": is_email,
    "date-time": is_date_time,
    "date": is_date,
    "time": is_time,
}


def matches_format(value: str, format_name: str) -> bool:
    """Check ``value`` against a named format; unknown formats always pass."""
    rule = FORMAT_RULES.get(format_name)
    if rule is None:
        return True
    return rule(value)
