"""Snapshot query endpoint: full current cache contents as JSON."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from .cache import MeasurementCache
from .errors import SnapshotSerializationError

logger = logging.getLogger(__name__)


def render_snapshot(cache: MeasurementCache) -> bytes:
    """Serialize a point-in-time snapshot as a JSON object keyed by source.

    Raises SnapshotSerializationError if any entry can't be represented as
    strict JSON (e.g. a NaN concentration).
    """
    snapshot = cache.snapshot()
    try:
        body = json.dumps(
            {source: measurement.to_dict() for source, measurement in snapshot.items()},
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise SnapshotSerializationError(f"Couldn't serialize {len(snapshot)} measurements: {e}") from e
    return body.encode("utf-8")


def create_snapshot_router(cache: MeasurementCache) -> APIRouter:
    """Create the snapshot query router with a reference to the cache."""
    router = APIRouter(tags=["measurements"])

    @router.get("/measurements")
    async def get_measurements() -> Response:
        """Latest measurement for every known source, keyed by source."""
        try:
            body = render_snapshot(cache)
        except SnapshotSerializationError as e:
            logger.error("Couldn't marshal data: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not serialize measurements.",
            ) from e
        return Response(content=body, media_type="application/json")

    return router
