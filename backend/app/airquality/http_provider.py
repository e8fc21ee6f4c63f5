"""HTTP client for the upstream measurement feed."""

from __future__ import annotations

import logging

import httpx

from .errors import DecodeError, FetchError
from .interface import MeasurementProvider
from .models import Measurement, decode_batch_json

logger = logging.getLogger(__name__)


class HttpMeasurementProvider(MeasurementProvider):
    """MeasurementProvider backed by an HTTP endpoint returning a JSON array.

    Every fetch is a single GET. Transport failures, timeouts and non-2xx
    responses become FetchError; anything that is not a well-formed array of
    measurements becomes DecodeError.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self) -> list[Measurement]:
        client = self._get_client()
        try:
            response = await client.get(self._url, headers={"Accept": "application/json"})
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"GET {self._url} failed: {e}") from e

        try:
            batch = decode_batch_json(response.content)
        except DecodeError as e:
            raise DecodeError(f"GET {self._url} returned a malformed batch: {e}") from e

        logger.debug("Fetched %d measurements from %s", len(batch), self._url)
        return batch

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        # Created lazily so the provider can be built outside a running loop
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client
