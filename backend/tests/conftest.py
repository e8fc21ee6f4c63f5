"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from app.airquality.bus import InProcessBroadcastBus
from app.airquality.cache import MeasurementCache
from app.airquality.interface import MeasurementProvider
from app.airquality.models import Measurement

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class ScriptedProvider(MeasurementProvider):
    """Provider that replays queued batches, raising any queued exception instead."""

    def __init__(self, *batches) -> None:
        self._batches = list(batches)
        self.fetch_count = 0
        self.closed = False

    def queue(self, batch) -> None:
        self._batches.append(batch)

    async def fetch(self) -> list[Measurement]:
        self.fetch_count += 1
        if not self._batches:
            return []
        item = self._batches.pop(0)
        if isinstance(item, Exception):
            raise item
        return list(item)

    async def aclose(self) -> None:
        self.closed = True


def _make_measurement(
    source: str = "A",
    recorded: datetime | None = None,
    pm2_5: float = 5.0,
    **overrides,
) -> Measurement:
    fields = {
        "sensor": "PMS5003",
        "source": source,
        "pm1_0": 3.0,
        "pm2_5": pm2_5,
        "pm10": 8.0,
        "latitude": -25.28,
        "longitude": -57.63,
        "recorded": recorded or T0,
    }
    fields.update(overrides)
    return Measurement(**fields)


@pytest.fixture
def make_measurement():
    """Factory for Measurements with sensible defaults."""
    return _make_measurement


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def later(t0):
    """Return t0 shifted forward by the given number of seconds."""
    return lambda seconds=1: t0 + timedelta(seconds=seconds)


@pytest.fixture
def cache() -> MeasurementCache:
    return MeasurementCache()


@pytest.fixture
def bus() -> InProcessBroadcastBus:
    return InProcessBroadcastBus(buffer_size=8)


@pytest.fixture
def scripted_provider():
    """The ScriptedProvider class, for building providers with queued batches."""
    return ScriptedProvider
