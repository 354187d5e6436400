"""Engine settings loaded from an optional JSON settings file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from confedit.core import constants as app_constants
from confedit.core.exceptions import EXPECTED_ERRORS

_LOG = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class EngineSettings:
    canonical_indent: int = app_constants.CANONICAL_INDENT
    canonical_sort_keys: bool = app_constants.CANONICAL_SORT_KEYS
    check_formats: bool = True
    log_level: str = "WARNING"
    diag_log_keep_days: int = app_constants.DIAG_LOG_KEEP_DAYS
    batch_max_workers: Optional[int] = None


def _coerce_bool(value: Any) -> Optional[bool]:
    # Accepts bool/int or 0/1-style text.
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(int(value))
    if isinstance(value, str):
        token = value.strip().lower()
        if token in ("1", "true", "yes", "on"):
            return True
        if token in ("0", "false", "no", "off"):
            return False
    return None


def _coerce_int(value: Any, low: int, high: int) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if low <= value <= high:
        return value
    return None


def settings_path(path: Any = None) -> str | None:
    """Resolve the settings file; a directory resolves to the settings file inside it."""
    target = str(path) if path else os.environ.get(app_constants.SETTINGS_PATH_ENV, "").strip()
    if not target:
        return None
    if os.path.isdir(target):
        return os.path.join(target, app_constants.SETTINGS_FILENAME)
    return target


def apply_settings_data(settings: EngineSettings, data: Any) -> EngineSettings:
    """Copy recognized values from ``data`` onto ``settings``; invalid ones are skipped."""
    if not isinstance(data, dict):
        _LOG.warning("settings ignored: top-level value is not an object")
        return settings
    for key, value in data.items():
        match key:
            case "canonical_indent":
                parsed = _coerce_int(value, 1, 8)
            case "canonical_sort_keys" | "check_formats":
                parsed = _coerce_bool(value)
            case "log_level":
                parsed = str(value).strip().upper() if isinstance(value, str) else None
                if parsed not in _LOG_LEVELS:
                    parsed = None
            case "diag_log_keep_days":
                parsed = _coerce_int(value, 1, 365)
            case "batch_max_workers":
                parsed = _coerce_int(value, 1, 64)
            case _:
                _LOG.debug("settings key ignored: %s", key)
                continue
        if parsed is None:
            _LOG.warning("settings value ignored: %s=%r", key, value)
            continue
        setattr(settings, key, parsed)
    return settings


def load_engine_settings(path: Any = None) -> EngineSettings:
    """Load settings from ``path`` (or the settings env var); defaults when absent or unreadable."""
    settings = EngineSettings()
    target = settings_path(path)
    if not target or not os.path.isfile(target):
        return settings
    try:
        with open(target, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except EXPECTED_ERRORS as exc:
        _LOG.debug("expected_error", exc_info=exc)
        return settings
    return apply_settings_data(settings, data)
