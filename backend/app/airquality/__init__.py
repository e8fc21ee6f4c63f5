"""Air-quality feed subsystem for airwatch.

Public API:
    Measurement             - Immutable sensor reading dataclass
    MeasurementCache        - Thread-safe freshest-reading-per-source store
    UpsertDecision          - Inserted / updated / stale outcome of an upsert
    MeasurementProvider     - Abstract interface for upstream feeds
    BroadcastBus            - Abstract publish/subscribe channel for changes
    InProcessBroadcastBus   - Bounded, drop-oldest in-process bus
    IngestionPoller         - Background fetch → cache → publish loop
    StreamSession           - Per-client SSE forwarder
    create_measurement_provider - Factory that selects HTTP feed or simulator
    create_snapshot_router  - FastAPI router factory for the snapshot query
    create_stream_router    - FastAPI router factory for the SSE endpoint
"""

from .bus import BroadcastBus, InProcessBroadcastBus, Subscription
from .cache import MeasurementCache, UpsertDecision
from .errors import (
    AirQualityError,
    DecodeError,
    FetchError,
    PublishFailure,
    SnapshotSerializationError,
    SubscriptionClosed,
)
from .factory import create_measurement_provider
from .interface import MeasurementProvider
from .models import Measurement
from .poller import IngestionPoller, PollResult
from .snapshot import create_snapshot_router, render_snapshot
from .stream import StreamSession, create_stream_router

__all__ = [
    "AirQualityError",
    "BroadcastBus",
    "DecodeError",
    "FetchError",
    "InProcessBroadcastBus",
    "IngestionPoller",
    "Measurement",
    "MeasurementCache",
    "MeasurementProvider",
    "PollResult",
    "PublishFailure",
    "SnapshotSerializationError",
    "StreamSession",
    "Subscription",
    "SubscriptionClosed",
    "UpsertDecision",
    "create_measurement_provider",
    "create_snapshot_router",
    "create_stream_router",
    "render_snapshot",
]
