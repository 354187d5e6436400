"""Engine settings loading tests."""

import json

import pytest

from confedit.core import constants as app_constants
from confedit.core.domain_impl.infra.engine_settings_service import (
    EngineSettings,
    apply_settings_data,
    load_engine_settings,
)


@pytest.fixture(autouse=True)
def _no_settings_env(monkeypatch):
    monkeypatch.delenv(app_constants.SETTINGS_PATH_ENV, raising=False)


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_without_settings_file(tmp_path):
    assert load_engine_settings() == EngineSettings()
    assert load_engine_settings(tmp_path / "missing.json") == EngineSettings()


def test_loads_values_from_file(tmp_path):
    path = _write(
        tmp_path / "custom.json",
        {
            "canonical_indent": 4,
            "canonical_sort_keys": False,
            "check_formats": "off",
            "log_level": "debug",
            "diag_log_keep_days": 7,
            "batch_max_workers": 3,
        },
    )
    settings = load_engine_settings(path)
    assert settings.canonical_indent == 4
    assert settings.canonical_sort_keys is False
    assert settings.check_formats is False
    assert settings.log_level == "DEBUG"
    assert settings.diag_log_keep_days == 7
    assert settings.batch_max_workers == 3


def test_invalid_values_are_ignored_field_by_field(tmp_path):
    path = _write(
        tmp_path / "custom.json",
        {"canonical_indent": 20, "log_level": "verbose", "check_formats": 0, "unknown": 1, "batch_max_workers": True},
    )
    settings = load_engine_settings(path)
    assert settings.canonical_indent == app_constants.CANONICAL_INDENT
    assert settings.log_level == "WARNING"
    assert settings.check_formats is False
    assert settings.batch_max_workers is None


def test_directory_and_environment_lookup(tmp_path, monkeypatch):
    _write(tmp_path / app_constants.SETTINGS_FILENAME, {"canonical_indent": 3})
    assert load_engine_settings(tmp_path).canonical_indent == 3
    monkeypatch.setenv(app_constants.SETTINGS_PATH_ENV, str(tmp_path))
    assert load_engine_settings().canonical_indent == 3


def test_unreadable_settings_fall_back_to_defaults(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_engine_settings(path) == EngineSettings()
    assert apply_settings_data(EngineSettings(), ["not", "a", "dict"]) == EngineSettings()
