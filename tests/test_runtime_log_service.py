"""Diagnostics log helper tests."""

import logging
import os
from datetime import datetime, timedelta

from confedit.core import constants as app_constants
from confedit.core.domain_impl.infra.engine_settings_service import EngineSettings
from confedit.core.domain_impl.infra.runtime_log_service import (
    build_dated_diag_log_path,
    configure_diag_logging,
    configure_diag_logging_from_settings,
    purge_stale_diag_logs,
)


def test_dated_log_path_uses_today(tmp_path):
    path = build_dated_diag_log_path(tmp_path)
    stamp = datetime.now().strftime("%Y-%m-%d")
    assert os.path.basename(path) == f"confedit_diagnostics-{stamp}.log"
    assert os.path.dirname(path) == str(tmp_path)


def test_purge_removes_stale_and_legacy_logs(tmp_path):
    today = os.path.basename(build_dated_diag_log_path(tmp_path))
    for name in (today, "confedit_diagnostics-2000-01-01.log", app_constants.DIAG_LOG_FILENAME, "notes.txt"):
        (tmp_path / name).write_text("x", encoding="utf-8")
    removed = purge_stale_diag_logs(tmp_path)
    assert sorted(removed) == sorted(["confedit_diagnostics-2000-01-01.log", app_constants.DIAG_LOG_FILENAME])
    assert sorted(os.listdir(tmp_path)) == sorted([today, "notes.txt"])


def test_purge_tolerates_missing_directory(tmp_path):
    assert purge_stale_diag_logs(tmp_path / "nope") == []


def test_configure_diag_logging_writes_engine_records(tmp_path):
    logger = logging.getLogger(app_constants.DIAG_LOGGER_NAME)
    previous_level = logger.level
    handler = configure_diag_logging(tmp_path / "logs", level="info")
    try:
        assert handler is not None
        assert configure_diag_logging(tmp_path / "logs", level="info") is handler
        logging.getLogger("confedit.tests").info("engine diagnostics line")
        handler.flush()
        with open(handler.baseFilename, encoding="utf-8") as fh:
            content = fh.read()
        assert "engine diagnostics line" in content
        assert "INFO confedit.tests" in content
    finally:
        logger.removeHandler(handler)
        handler.close()
        logger.setLevel(previous_level)


def test_purge_keeps_the_retention_window(tmp_path):
    today = datetime.now().date()
    names = [f"confedit_diagnostics-{today - timedelta(days=offset)}.log" for offset in range(4)]
    for name in names + ["confedit_diagnostics-latest.log"]:
        (tmp_path / name).write_text("x", encoding="utf-8")
    removed = purge_stale_diag_logs(tmp_path, keep_days=2)
    assert sorted(removed) == sorted(names[2:])
    assert sorted(os.listdir(tmp_path)) == sorted(names[:2] + ["confedit_diagnostics-latest.log"])


def test_settings_drive_diag_logging(tmp_path):
    logger = logging.getLogger(app_constants.DIAG_LOGGER_NAME)
    previous_level = logger.level
    yesterday = datetime.now().date() - timedelta(days=1)
    stale = tmp_path / f"confedit_diagnostics-{yesterday}.log"
    stale.write_text("x", encoding="utf-8")
    handler = configure_diag_logging_from_settings(tmp_path, EngineSettings(log_level="DEBUG", diag_log_keep_days=1))
    try:
        assert handler is not None
        assert logger.level == logging.DEBUG
        assert not stale.exists()
    finally:
        logger.removeHandler(handler)
        handler.close()
        logger.setLevel(previous_level)
