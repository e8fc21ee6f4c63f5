"""Broadcast bus: fan-out of changed measurements to live subscribers."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from .errors import PublishFailure, SubscriptionClosed
from .models import Measurement

logger = logging.getLogger(__name__)

TOPIC = "measurements"
DEFAULT_BUFFER_SIZE = 64

_CLOSED = object()  # Wakes a blocked receiver when the subscription closes


class Subscription:
    """One receiver's bounded buffer of measurements, in publish order.

    When the buffer is full the oldest pending record is dropped so a slow
    consumer never stalls the publisher.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=buffer_size)
        self._closed = False
        self._dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        """Number of records discarded because the buffer was full."""
        return self._dropped

    @property
    def pending(self) -> int:
        """Number of records waiting to be received."""
        return 0 if self._closed else self._queue.qsize()

    def offer(self, measurement: Measurement) -> bool:
        """Buffer a record without blocking. Returns False if the subscription is closed."""
        if self._closed:
            return False
        if self._queue.full():
            self._queue.get_nowait()
            self._dropped += 1
            logger.warning(
                "Subscriber buffer full, dropped oldest measurement",
                extra={"dropped": self._dropped},
            )
        self._queue.put_nowait(measurement)
        return True

    async def receive(self, timeout: float | None = None) -> Measurement | None:
        """Wait for the next record. Returns None if `timeout` seconds pass first.

        Raises SubscriptionClosed once the subscription has been closed.
        """
        if self._closed:
            raise SubscriptionClosed(f"Subscription to {TOPIC!r} is closed")
        try:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        except TimeoutError:
            return None
        if item is _CLOSED:
            raise SubscriptionClosed(f"Subscription to {TOPIC!r} is closed")
        return item

    def close(self) -> None:
        """Stop accepting records and wake any pending receive(). Idempotent."""
        if self._closed:
            return
        self._closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)


class BroadcastBus(ABC):
    """Publish/subscribe channel for changed measurements on one fixed topic.

    Subscribers only see records published after they subscribed; there is no
    replay. Delivery is best-effort: nothing is retained for receivers that
    are not subscribed.
    """

    @abstractmethod
    async def publish(self, measurement: Measurement) -> None:
        """Deliver a record to every current subscriber.

        Must not block on a slow subscriber. Raises PublishFailure if the
        transport cannot accept the record.
        """

    @abstractmethod
    def subscribe(self) -> Subscription:
        """Register a new receiver."""

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivery to a receiver and close it. No-op if already removed."""

    @property
    @abstractmethod
    def subscriber_count(self) -> int:
        """Number of currently registered receivers."""


class InProcessBroadcastBus(BroadcastBus):
    """BroadcastBus backed by per-subscriber asyncio queues in this process.

    Must be used from a single event loop. Each subscriber gets a buffer of
    `buffer_size` records with drop-oldest overflow.
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self._buffer_size = buffer_size
        self._subscriptions: set[Subscription] = set()
        self._closed = False

    async def publish(self, measurement: Measurement) -> None:
        if self._closed:
            raise PublishFailure(f"Bus for {TOPIC!r} is closed")
        for subscription in list(self._subscriptions):
            subscription.offer(measurement)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self._buffer_size)
        self._subscriptions.add(subscription)
        logger.debug("Subscriber added", extra={"subscribers": len(self._subscriptions)})
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.discard(subscription)
            logger.debug("Subscriber removed", extra={"subscribers": len(self._subscriptions)})
        subscription.close()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def close(self) -> None:
        """Close every subscription and refuse further publishes."""
        self._closed = True
        for subscription in list(self._subscriptions):
            self.unsubscribe(subscription)
