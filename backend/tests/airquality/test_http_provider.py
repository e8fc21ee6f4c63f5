"""Tests for HttpMeasurementProvider (mocked transport)."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from app.airquality.errors import DecodeError, FetchError
from app.airquality.http_provider import HttpMeasurementProvider

URL = "https://feed.test/api/v1/measurements"


def _payload(*sources: str) -> list[dict]:
    return [
        {
            "sensor": "PMS5003",
            "source": source,
            "pm1dot0": 3.0,
            "pm2dot5": 5.0,
            "pm10": 8.0,
            "latitude": -25.28,
            "longitude": -57.63,
            "recorded": "2024-05-01T12:00:00.000000001Z",
        }
        for source in sources
    ]


def _provider(handler) -> HttpMeasurementProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpMeasurementProvider(url=URL, client=client)


@pytest.mark.asyncio
class TestHttpMeasurementProvider:
    """Unit tests for HttpMeasurementProvider with a mocked upstream."""

    async def test_fetch_decodes_batch(self):
        """Test that a JSON array is decoded in order."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=_payload("B", "A"))

        provider = _provider(handler)
        batch = await provider.fetch()

        assert [m.source for m in batch] == ["B", "A"]
        assert batch[0].recorded == datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert str(requests[0].url) == URL
        assert requests[0].method == "GET"

    async def test_server_error_is_fetch_error(self):
        provider = _provider(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(FetchError):
            await provider.fetch()

    async def test_transport_error_is_fetch_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = _provider(handler)
        with pytest.raises(FetchError):
            await provider.fetch()

    async def test_invalid_json_is_decode_error(self):
        provider = _provider(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(DecodeError):
            await provider.fetch()

    async def test_wrong_shape_is_decode_error(self):
        provider = _provider(lambda request: httpx.Response(200, json={"data": _payload("A")}))
        with pytest.raises(DecodeError):
            await provider.fetch()

    async def test_malformed_record_rejects_batch(self):
        """Test that one bad record discards the whole batch."""
        payload = _payload("A", "B")
        payload[1]["recorded"] = "not-a-date"
        provider = _provider(lambda request: httpx.Response(200, content=json.dumps(payload)))
        with pytest.raises(DecodeError):
            await provider.fetch()

    @pytest.mark.parametrize("literal", ["NaN", "Infinity"])
    async def test_non_finite_number_is_decode_error(self, literal):
        """Test that a NaN/Infinity literal in the body rejects the batch."""
        body = json.dumps(_payload("A")).replace('"pm10": 8.0', f'"pm10": {literal}')
        provider = _provider(lambda request: httpx.Response(200, content=body.encode()))
        with pytest.raises(DecodeError):
            await provider.fetch()

    async def test_injected_client_not_closed(self):
        """Test that aclose() leaves a caller-owned client open."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[])))
        provider = HttpMeasurementProvider(url=URL, client=client)

        await provider.aclose()
        assert not client.is_closed
        await client.aclose()

    async def test_owned_client_closed(self):
        """Test that a lazily created client is closed and aclose() is repeatable."""
        provider = HttpMeasurementProvider(url=URL, timeout=1.0)
        client = provider._get_client()

        await provider.aclose()
        await provider.aclose()
        assert client.is_closed
