"""Thread-safe freshness cache: latest measurement per sensor source."""

from __future__ import annotations

import logging
from enum import Enum
from threading import Lock

from .models import Measurement

logger = logging.getLogger(__name__)


class UpsertDecision(str, Enum):
    """Outcome of offering a measurement to the cache."""

    INSERTED = "inserted"
    UPDATED = "updated"
    STALE = "stale"

    @property
    def changed(self) -> bool:
        """True if the cache now holds the offered measurement."""
        return self is not UpsertDecision.STALE


class MeasurementCache:
    """Thread-safe in-memory cache of the freshest measurement for each source.

    Writer: IngestionPoller (one poll cycle at a time).
    Readers: snapshot endpoint, health endpoint.

    For every source the stored `recorded` timestamp never goes backwards:
    a reading that is not strictly newer than the stored one is rejected.
    Entries are never evicted.
    """

    def __init__(self) -> None:
        self._measurements: dict[str, Measurement] = {}
        self._lock = Lock()
        self._version: int = 0  # Bumped on every accepted measurement

    def upsert(self, measurement: Measurement) -> UpsertDecision:
        """Offer a measurement. Returns whether it was inserted, updated, or stale.

        Ties on `recorded` keep the existing entry.
        """
        with self._lock:
            prev = self._measurements.get(measurement.source)
            if prev is None:
                decision = UpsertDecision.INSERTED
            elif measurement.is_newer_than(prev):
                decision = UpsertDecision.UPDATED
            else:
                return UpsertDecision.STALE

            self._measurements[measurement.source] = measurement
            self._version += 1

        if decision is UpsertDecision.INSERTED:
            logger.info("No data for source %s, creating entry", measurement.source)
        else:
            logger.debug("New data for source %s", measurement.source)
        return decision

    def get(self, source: str) -> Measurement | None:
        """Latest measurement for a single source, or None if never seen."""
        with self._lock:
            return self._measurements.get(source)

    def snapshot(self) -> dict[str, Measurement]:
        """Point-in-time copy of all entries.

        Measurements are immutable, so the shallow copy can be iterated and
        serialized after the lock is released.
        """
        with self._lock:
            return dict(self._measurements)

    @property
    def version(self) -> int:
        """Number of accepted measurements so far."""
        return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._measurements)

    def __contains__(self, source: str) -> bool:
        with self._lock:
            return source in self._measurements
