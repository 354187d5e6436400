"""Infra domain package exports."""

from __future__ import annotations

from . import engine_settings_service
from . import runtime_log_service

__all__ = [
    "engine_settings_service",
    "runtime_log_service",
]
