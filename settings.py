from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_WINDOW_CAPACITY_ENV = "HEALTH_WINDOW_CAPACITY"
_ALERT_CAPACITY_ENV = "HEALTH_ALERT_HISTORY_CAPACITY"
_SAMPLE_INTERVAL_ENV = "HEALTH_SAMPLE_INTERVAL_MS"
_DEVICE_NAME_ENV = "HEALTH_DEVICE_NAME"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    window_capacity: int
    alert_history_capacity: int
    sample_interval_ms: int
    device_name: str
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        window_capacity=_read_positive_int(_WINDOW_CAPACITY_ENV, 3600),
        alert_history_capacity=_read_positive_int(_ALERT_CAPACITY_ENV, 100),
        sample_interval_ms=_read_positive_int(_SAMPLE_INTERVAL_ENV, 1000),
        device_name=_read_str_env(_DEVICE_NAME_ENV, "gpu0"),
        log_level=_read_log_level("INFO"),
    )
