"""Diagnostics log path, retention and handler setup."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any

from confedit.core import constants as app_constants
from confedit.core.domain_impl.infra.engine_settings_service import EngineSettings
from confedit.core.exceptions import EXPECTED_ERRORS

_LOG = logging.getLogger(__name__)


def build_dated_diag_log_path(runtime_dir: Any, diag_log_filename: Any = app_constants.DIAG_LOG_FILENAME) -> str:
    """Build today's diagnostics log path using YYYY-MM-DD suffix."""
    base, ext = os.path.splitext(str(diag_log_filename))
    dated_name = f"{base}-{datetime.now().strftime('%Y-%m-%d')}{ext}"
    return os.path.join(str(runtime_dir), dated_name)


def purge_stale_diag_logs(
    runtime_dir: Any,
    diag_log_filename: Any = app_constants.DIAG_LOG_FILENAME,
    keep_days: Any = app_constants.DIAG_LOG_KEEP_DAYS,
) -> list[str]:
    """Remove dated diag logs older than ``keep_days`` plus the undated legacy file."""
    legacy = Path(str(diag_log_filename))
    oldest_kept = date.today() - timedelta(days=max(1, int(keep_days or 1)) - 1)
    removed: list[str] = []
    for path in sorted(Path(str(runtime_dir)).glob(f"{legacy.stem}*{legacy.suffix}")):
        if not path.is_file():
            continue
        if path.name != legacy.name:
            try:
                stamp = date.fromisoformat(path.stem.removeprefix(f"{legacy.stem}-"))
            except ValueError:
                continue
            if stamp >= oldest_kept:
                continue
        try:
            path.unlink()
        except OSError as exc:
            _LOG.debug("expected_error", exc_info=exc)
            continue
        removed.append(path.name)
    return removed


def configure_diag_logging(
    runtime_dir: Any,
    level: Any = logging.WARNING,
    keep_days: Any = app_constants.DIAG_LOG_KEEP_DAYS,
) -> logging.Handler | None:
    """Attach today's diagnostics file handler to the engine logger.

    Stale dated logs are purged first. Calling again for the same file is a
    no-op that returns the existing handler; None when the file cannot be opened.
    """
    logger = logging.getLogger(app_constants.DIAG_LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)

    path = build_dated_diag_log_path(runtime_dir)
    target = os.path.abspath(path)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return handler

    purge_stale_diag_logs(runtime_dir, keep_days=keep_days)
    try:
        os.makedirs(str(runtime_dir), exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except EXPECTED_ERRORS as exc:
        _LOG.debug("expected_error", exc_info=exc)
        return None
    handler.setFormatter(logging.Formatter(app_constants.DIAG_LOG_FORMAT))
    logger.addHandler(handler)
    return handler


def configure_diag_logging_from_settings(runtime_dir: Any, settings: EngineSettings) -> logging.Handler | None:
    """Attach the diagnostics handler using the level and retention from ``settings``."""
    return configure_diag_logging(runtime_dir, level=settings.log_level, keep_days=settings.diag_log_keep_days)
