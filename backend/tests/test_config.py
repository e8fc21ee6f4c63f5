import logging
import os
from unittest.mock import patch

import pytest

from app.config import DEFAULT_MEASUREMENTS_URL, Settings, get_settings, load_settings
from app.logging_config import ContextualFormatter


def test_defaults_without_environment() -> None:
    with patch.dict(os.environ, {}, clear=True):
        settings = load_settings()

    assert settings == Settings()
    assert settings.measurements_url == DEFAULT_MEASUREMENTS_URL
    assert settings.poll_interval == 0.5
    assert settings.port == 8080


def test_environment_overrides() -> None:
    env = {
        "AIRWATCH_MEASUREMENTS_URL": " http://feed.local/m ",
        "AIRWATCH_PROVIDER": "Simulator",
        "AIRWATCH_POLL_INTERVAL": "2",
        "AIRWATCH_FETCH_TIMEOUT": "3.5",
        "AIRWATCH_SUBSCRIBER_BUFFER": "16",
        "AIRWATCH_PORT": "9090",
        "LOG_LEVEL": "debug",
    }
    with patch.dict(os.environ, env, clear=True):
        settings = load_settings()

    assert settings.measurements_url == "http://feed.local/m"
    assert settings.provider == "simulator"
    assert settings.poll_interval == 2.0
    assert settings.fetch_timeout == 3.5
    assert settings.subscriber_buffer == 16
    assert settings.port == 9090
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [
        ("AIRWATCH_POLL_INTERVAL", "0"),
        ("AIRWATCH_POLL_INTERVAL", "-1"),
        ("AIRWATCH_POLL_INTERVAL", "soon"),
        ("AIRWATCH_SUBSCRIBER_BUFFER", "1.5"),
        ("AIRWATCH_PROVIDER", "carrier-pigeon"),
        ("AIRWATCH_MEASUREMENTS_URL", "   "),
    ],
)
def test_invalid_values_fall_back_to_defaults(name: str, value: str) -> None:
    with patch.dict(os.environ, {name: value}, clear=True):
        settings = load_settings()

    assert settings == Settings()


def test_get_settings_is_cached() -> None:
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_contextual_formatter_appends_extras() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")
    record = logging.LogRecord("airwatch", logging.INFO, __file__, 1, "published", None, None)
    record.source = "asu-centro-01"
    record.decision = "updated"

    assert formatter.format(record) == "published | source=asu-centro-01 decision=updated"


def test_contextual_formatter_without_extras() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")
    record = logging.LogRecord("airwatch", logging.INFO, __file__, 1, "plain", None, None)

    assert formatter.format(record) == "plain"


def test_contextual_formatter_only_known_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", context_keys=("dropped",))
    record = logging.LogRecord("airwatch", logging.WARNING, __file__, 1, "buffer full", None, None)
    record.dropped = 4
    record.source = "ignored"

    assert formatter.format(record) == "buffer full | dropped=4"


def test_contextual_formatter_times_are_utc() -> None:
    formatter = ContextualFormatter(fmt="%(asctime)sZ %(message)s", datefmt="%Y-%m-%dT%H:%M:%S")
    record = logging.LogRecord("airwatch", logging.INFO, __file__, 1, "tick", None, None)
    record.created = 0.0

    assert formatter.format(record) == "1970-01-01T00:00:00Z tick"
