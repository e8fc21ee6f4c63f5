"""FastAPI application wiring for the airwatch service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, status

from app.airquality import (
    IngestionPoller,
    InProcessBroadcastBus,
    MeasurementCache,
    MeasurementProvider,
    create_measurement_provider,
    create_snapshot_router,
    create_stream_router,
)
from app.config import Settings, get_settings
from app.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    provider: MeasurementProvider | None = None,
) -> FastAPI:
    """Build the app with its own cache, bus and poller.

    `provider` overrides the one chosen from settings (used by tests).
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    cache = MeasurementCache()
    bus = InProcessBroadcastBus(buffer_size=settings.subscriber_buffer)
    provider = provider or create_measurement_provider(settings)
    poller = IngestionPoller(
        provider=provider,
        cache=cache,
        bus=bus,
        poll_interval=settings.poll_interval,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await poller.start()
        try:
            yield
        finally:
            await poller.stop()
            bus.close()
            await provider.aclose()

    app = FastAPI(
        title="airwatch",
        description="Freshest air-quality reading per sensor, with live change streaming.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.cache = cache
    app.state.bus = bus
    app.state.poller = poller

    app.include_router(create_snapshot_router(cache))
    app.include_router(create_stream_router(bus))

    @app.get("/health", summary="Health check endpoint.", status_code=status.HTTP_200_OK)
    async def healthcheck() -> dict[str, str | int]:
        return {
            "status": "ok",
            "sources": len(cache),
            "subscribers": bus.subscriber_count,
        }

    return app


def run() -> None:
    """Serve the app with uvicorn using environment settings."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
