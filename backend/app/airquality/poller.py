"""Ingestion poller: fetch, deduplicate, and broadcast measurements."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .bus import BroadcastBus
from .cache import MeasurementCache, UpsertDecision
from .errors import DecodeError, FetchError, PublishFailure
from .interface import MeasurementProvider

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PollResult:
    """Counters for one successful poll cycle."""

    fetched: int = 0
    inserted: int = 0
    updated: int = 0
    stale: int = 0
    published: int = 0
    publish_failures: int = 0


class IngestionPoller:
    """Periodically pulls a batch from the provider into the cache.

    Every record that the cache accepts (first sighting or strictly newer) is
    published on the bus. Fetch and decode failures skip the whole cycle and
    are retried after the fixed interval, forever. Publish failures are logged
    and never roll back the cache.

    Lifecycle:
        poller = IngestionPoller(provider, cache, bus, poll_interval=0.5)
        await poller.start()   # immediate first poll, then background loop
        # ... app runs ...
        await poller.stop()
    """

    def __init__(
        self,
        provider: MeasurementProvider,
        cache: MeasurementCache,
        bus: BroadcastBus,
        poll_interval: float = 0.5,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._bus = bus
        self._interval = poll_interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        # Do an immediate first poll so the cache has data right away
        await self._run_cycle()

        self._task = asyncio.create_task(self._poll_loop(), name="ingestion-poller")
        logger.info("Ingestion poller started: %.1fs interval", self._interval)

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Ingestion poller stopped")

    async def poll_once(self) -> PollResult | None:
        """Execute one poll cycle. Returns None if the batch was skipped."""
        try:
            batch = await self._provider.fetch()
        except FetchError as e:
            logger.warning("Couldn't fetch measurements: %s", e)
            return None
        except DecodeError as e:
            logger.warning("Discarding malformed measurement batch: %s", e)
            return None

        result = PollResult(fetched=len(batch))
        for measurement in batch:
            decision = self._cache.upsert(measurement)
            if decision is UpsertDecision.INSERTED:
                result.inserted += 1
            elif decision is UpsertDecision.UPDATED:
                result.updated += 1
            else:
                result.stale += 1
                continue

            try:
                await self._bus.publish(measurement)
                result.published += 1
            except PublishFailure as e:
                result.publish_failures += 1
                logger.error(
                    "Couldn't publish measurement: %s",
                    e,
                    extra={"source": measurement.source, "decision": decision.value},
                )

        logger.debug(
            "Poll cycle: %d fetched, %d inserted, %d updated, %d stale",
            result.fetched,
            result.inserted,
            result.updated,
            result.stale,
        )
        return result

    # --- Internal ---

    async def _poll_loop(self) -> None:
        """Poll on interval. First poll already happened in start()."""
        while True:
            await asyncio.sleep(self._interval)
            await self._run_cycle()

    async def _run_cycle(self) -> None:
        try:
            await self.poll_once()
        except Exception:
            logger.exception("Poll cycle failed")
