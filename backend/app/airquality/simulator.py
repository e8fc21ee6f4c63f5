"""Mean-reverting particulate simulator and the offline measurement provider."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import datetime, timezone

import numpy as np

from .interface import MeasurementProvider
from .models import Measurement
from .seed_sensors import (
    BASELINE_PM2_5,
    DEFAULT_PM2_5,
    PM1_0_RATIO,
    PM10_RATIO,
    REPORT_PROBABILITY,
    REVERSION_RATE,
    SEED_SENSORS,
    VOLATILITY,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ParticulateSimulator:
    """Mean-reverting lognormal random walk for PM2.5 across many sources.

    Math (per step, in log space):
        x(t+1) = x(t) + theta * (log(base) - x(t)) + sigma * Z

    Where:
        x      = log PM2.5 concentration
        base   = per-source baseline concentration
        theta  = reversion rate toward the baseline
        sigma  = per-step volatility
        Z      = standard normal draw

    PM1.0 and PM10 are derived from PM2.5 with fixed ratios so that
    pm1_0 <= pm2_5 <= pm10 always holds.
    """

    def __init__(
        self,
        sources: list[str],
        reversion_rate: float = REVERSION_RATE,
        volatility: float = VOLATILITY,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._sources = list(sources)
        self._theta = reversion_rate
        self._sigma = volatility
        self._rng = rng or np.random.default_rng()
        self._log_base = np.array(
            [math.log(BASELINE_PM2_5.get(s, DEFAULT_PM2_5)) for s in self._sources]
        )
        self._log_pm2_5 = self._log_base.copy()

    @property
    def sources(self) -> list[str]:
        return list(self._sources)

    def step(self) -> dict[str, tuple[float, float, float]]:
        """Advance every source by one step. Returns {source: (pm1_0, pm2_5, pm10)}."""
        if not self._sources:
            return {}

        z = self._rng.standard_normal(len(self._sources))
        self._log_pm2_5 += self._theta * (self._log_base - self._log_pm2_5) + self._sigma * z

        levels = np.exp(self._log_pm2_5)
        return {source: self._fractions(float(level)) for source, level in zip(self._sources, levels)}

    def current(self, source: str) -> tuple[float, float, float] | None:
        """Current (pm1_0, pm2_5, pm10) for a source, or None if not simulated."""
        if source not in self._sources:
            return None
        return self._fractions(float(np.exp(self._log_pm2_5[self._sources.index(source)])))

    @staticmethod
    def _fractions(pm2_5: float) -> tuple[float, float, float]:
        return (round(pm2_5 * PM1_0_RATIO, 1), round(pm2_5, 1), round(pm2_5 * PM10_RATIO, 1))


class SimulatedMeasurementProvider(MeasurementProvider):
    """MeasurementProvider backed by the ParticulateSimulator.

    Every fetch advances the simulation one step and returns one reading per
    seed sensor. A sensor only takes a fresh reading with probability
    `report_probability`; otherwise its previous reading is repeated
    unchanged, the way a real feed keeps serving a sensor's last upload.
    """

    def __init__(
        self,
        sensors: dict[str, tuple[str, float, float]] | None = None,
        report_probability: float = REPORT_PROBABILITY,
        seed: int | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._sensors = dict(SEED_SENSORS if sensors is None else sensors)
        self._report_prob = report_probability
        self._rng = np.random.default_rng(seed)
        self._clock = clock
        self._sim = ParticulateSimulator(list(self._sensors), rng=self._rng)
        self._last: dict[str, Measurement] = {}

    async def fetch(self) -> list[Measurement]:
        levels = self._sim.step()
        now = self._clock()
        batch: list[Measurement] = []
        for source, (model, latitude, longitude) in self._sensors.items():
            previous = self._last.get(source)
            if previous is not None and self._rng.random() >= self._report_prob:
                batch.append(previous)
                continue
            pm1_0, pm2_5, pm10 = levels[source]
            reading = Measurement(
                sensor=model,
                source=source,
                pm1_0=pm1_0,
                pm2_5=pm2_5,
                pm10=pm10,
                latitude=latitude,
                longitude=longitude,
                recorded=now,
            )
            self._last[source] = reading
            batch.append(reading)
        logger.debug("Simulated batch of %d measurements", len(batch))
        return batch
