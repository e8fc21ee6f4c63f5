"""Factory for creating measurement providers."""

from __future__ import annotations

import logging

from app.config import Settings

from .interface import MeasurementProvider

logger = logging.getLogger(__name__)


def create_measurement_provider(settings: Settings) -> MeasurementProvider:
    """Create the provider selected by settings.

    - provider == "simulator" → SimulatedMeasurementProvider (offline feed)
    - Otherwise → HttpMeasurementProvider against settings.measurements_url

    The returned provider holds no open connections until its first fetch.
    """
    if settings.provider == "simulator":
        from .simulator import SimulatedMeasurementProvider

        logger.info("Measurement source: simulator")
        return SimulatedMeasurementProvider()
    else:
        from .http_provider import HttpMeasurementProvider

        logger.info("Measurement source: %s", settings.measurements_url)
        return HttpMeasurementProvider(
            url=settings.measurements_url,
            timeout=settings.fetch_timeout,
        )
