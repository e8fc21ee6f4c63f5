"""Environment-driven settings for the airwatch service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_MEASUREMENTS_URL = "https://rald-dev.greenbeep.com/api/v1/measurements"
PROVIDERS = ("http", "simulator")

_URL_ENV = "AIRWATCH_MEASUREMENTS_URL"
_PROVIDER_ENV = "AIRWATCH_PROVIDER"
_POLL_INTERVAL_ENV = "AIRWATCH_POLL_INTERVAL"
_FETCH_TIMEOUT_ENV = "AIRWATCH_FETCH_TIMEOUT"
_BUFFER_ENV = "AIRWATCH_SUBSCRIBER_BUFFER"
_HOST_ENV = "AIRWATCH_HOST"
_PORT_ENV = "AIRWATCH_PORT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    measurements_url: str = DEFAULT_MEASUREMENTS_URL
    provider: str = "http"
    poll_interval: float = 0.5
    fetch_timeout: float = 10.0
    subscriber_buffer: int = 64
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_env(name: str, default: float, cast: type = float):
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = cast(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_provider(default: str) -> str:
    candidate = _read_str_env(_PROVIDER_ENV, default).lower()
    return candidate if candidate in PROVIDERS else default


def load_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        measurements_url=_read_str_env(_URL_ENV, DEFAULT_MEASUREMENTS_URL),
        provider=_read_provider("http"),
        poll_interval=_read_positive_env(_POLL_INTERVAL_ENV, 0.5),
        fetch_timeout=_read_positive_env(_FETCH_TIMEOUT_ENV, 10.0),
        subscriber_buffer=_read_positive_env(_BUFFER_ENV, 64, int),
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        port=_read_positive_env(_PORT_ENV, 8080, int),
        log_level=_read_str_env(_LOG_LEVEL_ENV, "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
