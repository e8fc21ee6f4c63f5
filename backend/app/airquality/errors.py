"""Exception hierarchy for the air-quality subsystem."""

from __future__ import annotations


class AirQualityError(Exception):
    """Base class for all air-quality errors."""


class FetchError(AirQualityError):
    """The upstream provider could not be reached or answered with an error status."""


class DecodeError(AirQualityError):
    """The upstream payload was not a valid batch of measurements."""


class PublishFailure(AirQualityError):
    """A changed measurement could not be handed to the broadcast bus."""


class SnapshotSerializationError(AirQualityError):
    """The cache contents could not be serialized for a query response."""


class SubscriptionClosed(AirQualityError):
    """Raised by Subscription.receive() once the subscription has been closed."""
