"""SSE streaming endpoint for live measurement changes."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from .bus import BroadcastBus
from .errors import SubscriptionClosed
from .models import Measurement

logger = logging.getLogger(__name__)

EVENT_NAME = "message"


def format_event(measurement: Measurement, event: str = EVENT_NAME) -> str:
    """Render one measurement as an SSE frame."""
    payload = json.dumps(measurement.to_dict())
    return f"event: {event}\ndata: {payload}\n\n"


class StreamSession:
    """Forwards bus records to one SSE client until it goes away.

    The subscription is taken when the event generator starts and released
    when it finishes, whatever the reason: client disconnect, cancellation,
    or the subscription being closed from the bus side.
    """

    def __init__(
        self,
        bus: BroadcastBus,
        request: Request,
        receive_timeout: float = 1.0,
    ) -> None:
        self._bus = bus
        self._request = request
        self._timeout = receive_timeout
        self.client = request.client.host if request.client else "unknown"

    async def events(self) -> AsyncGenerator[str, None]:
        """Async generator of SSE frames for this client."""
        subscription = self._bus.subscribe()
        logger.info(
            "SSE client connected: %s",
            self.client,
            extra={"subscribers": self._bus.subscriber_count},
        )
        try:
            # Tell the client to retry after 1 second if the connection drops
            yield "retry: 1000\n\n"

            while True:
                if await self._request.is_disconnected():
                    logger.info("SSE client disconnected: %s", self.client)
                    break

                try:
                    measurement = await subscription.receive(timeout=self._timeout)
                except SubscriptionClosed:
                    logger.warning("Subscription closed, ending stream for: %s", self.client)
                    break

                if measurement is not None:
                    yield format_event(measurement)
        except asyncio.CancelledError:
            logger.info("SSE stream cancelled for: %s", self.client)
            raise
        finally:
            self._bus.unsubscribe(subscription)


def create_stream_router(bus: BroadcastBus, receive_timeout: float = 1.0) -> APIRouter:
    """Create the SSE streaming router with a reference to the broadcast bus."""
    router = APIRouter(tags=["streaming"])

    @router.get("/stream")
    async def stream_measurements(request: Request) -> StreamingResponse:
        """SSE endpoint for live measurement changes.

        Every measurement the cache accepts is sent as one event:

            event: message
            data: {"sensor": "PMS5003", "source": "asu-centro-01", ...}

        Only changes published after the client connects are sent; use
        GET /measurements for the current state.
        """
        session = StreamSession(bus, request, receive_timeout=receive_timeout)
        return StreamingResponse(
            session.events(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router
