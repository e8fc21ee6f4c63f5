"""Abstract interface for measurement providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import Measurement


class MeasurementProvider(ABC):
    """Contract for upstream measurement feeds.

    A provider only knows how to fetch one batch. Scheduling, deduplication
    and fan-out are the IngestionPoller's job.

    Lifecycle:
        provider = create_measurement_provider(settings)
        batch = await provider.fetch()   # called once per poll cycle
        # ... app shutting down ...
        await provider.aclose()
    """

    @abstractmethod
    async def fetch(self) -> list[Measurement]:
        """Fetch the current batch of measurements, in provider order.

        Raises FetchError if the provider cannot be reached and DecodeError
        if the payload is malformed. Never returns a partial batch.
        """

    async def aclose(self) -> None:
        """Release resources held by the provider. Safe to call multiple times."""
