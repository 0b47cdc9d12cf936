"""Tests for directions.py.

The provider is replaced by ``httpx.MockTransport`` and backoff waits by a
recorder, so no network access or real sleeping occurs.
"""

import json
import logging

import httpx
import pytest

import directions
from directions import DirectionsClient, backoff_delay, resolve_profile
from errors import NoGeometryError, RoutingProviderError
from models import RoundTripOptions, RoutingOptions, RoutingProfile

_START = (11.39, 47.26)
_END = (11.58, 48.14)
_GEOJSON_OK = {
    "features": [
        {"geometry": {"coordinates": [[11.39, 47.26], [11.45, 47.5], [11.58, 48.14]]}}
    ]
}


class _SleepRecorder:
    """Stands in for ``asyncio.sleep`` and remembers each requested delay."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class _ScriptedProvider:
    """Answers successive requests from a list of (status, body) pairs."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self._responses.pop(0)
        return httpx.Response(status, json=body)


def _client(provider, sleep=None):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(provider))
    return DirectionsClient(
        api_key="TEST_KEY",
        base_url="https://ors.test",
        http_client=http_client,
        sleep=sleep or _SleepRecorder(),
    )


# ---------------------------------------------------------------------------
# Profiles and backoff
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("profile", [p.value for p in RoutingProfile])
def test_resolve_profile_accepts_every_known_profile(profile):
    assert resolve_profile(profile).value == profile


def test_resolve_profile_substitutes_unknown_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="directions"):
        assert resolve_profile("rocket-ship") is RoutingProfile.CYCLING_REGULAR
    assert any("rocket-ship" in r.getMessage() for r in caplog.records)


def test_backoff_delays_double_and_cap():
    assert [backoff_delay(n) for n in (1, 2, 3, 4, 5)] == [1, 2, 4, 5, 5]


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_point_to_point_sends_start_and_end():
    provider = _ScriptedProvider([(200, _GEOJSON_OK)])
    async with _client(provider) as client:
        await client.request_route(_START, _END, "cycling-regular")

    request = provider.requests[0]
    assert request.url == "https://ors.test/v2/directions/cycling-regular"
    assert request.headers["Authorization"] == "TEST_KEY"
    body = json.loads(request.content)
    assert body == {"coordinates": [list(_START), list(_END)], "options": {}}


@pytest.mark.asyncio
async def test_round_trip_sends_only_start():
    provider = _ScriptedProvider([(200, _GEOJSON_OK)])
    options = RoutingOptions(round_trip=RoundTripOptions(length=10000, points=3))
    async with _client(provider) as client:
        await client.request_route(_START, None, "foot-hiking", options)

    request = provider.requests[0]
    assert request.url.path == "/v2/directions/foot-hiking"
    body = json.loads(request.content)
    assert body["coordinates"] == [list(_START)]
    assert body["options"] == {"round_trip": {"length": 10000, "points": 3}}


@pytest.mark.asyncio
async def test_unknown_profile_is_sent_as_cycling():
    provider = _ScriptedProvider([(200, _GEOJSON_OK)])
    async with _client(provider) as client:
        await client.request_route(_START, _END, "hovercraft")
    assert provider.requests[0].url.path == "/v2/directions/cycling-regular"


@pytest.mark.asyncio
async def test_point_to_point_without_end_raises():
    provider = _ScriptedProvider([])
    async with _client(provider) as client:
        with pytest.raises(ValueError, match="end is required"):
            await client.request_route(_START, None, "cycling-regular")
    assert provider.requests == []


@pytest.mark.asyncio
async def test_success_returns_decoded_path():
    provider = _ScriptedProvider([(200, _GEOJSON_OK)])
    async with _client(provider) as client:
        path = await client.request_route(_START, _END)
    assert path == [(11.39, 47.26), (11.45, 47.5), (11.58, 48.14)]


@pytest.mark.asyncio
async def test_success_without_geometry_raises():
    provider = _ScriptedProvider([(200, {"routes": []})])
    async with _client(provider) as client:
        with pytest.raises(NoGeometryError):
            await client.request_route(_START, _END)


# ---------------------------------------------------------------------------
# Retry and errors
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_rate_limited_twice_then_succeeds_after_two_delays():
    sleep = _SleepRecorder()
    provider = _ScriptedProvider(
        [
            (429, {"error": {"code": 0, "message": "Rate limit exceeded"}}),
            (429, {"error": {"code": 0, "message": "Rate limit exceeded"}}),
            (200, _GEOJSON_OK),
        ]
    )
    async with _client(provider, sleep) as client:
        path = await client.request_route(_START, _END)

    assert len(path) == 3
    assert len(provider.requests) == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_server_errors_exhaust_retries():
    sleep = _SleepRecorder()
    provider = _ScriptedProvider(
        [
            (502, {"error": "Bad gateway"}),
            (503, {"error": "Unavailable"}),
            (500, {"error": {"message": "Internal failure"}}),
        ]
    )
    async with _client(provider, sleep) as client:
        with pytest.raises(RoutingProviderError, match="Internal failure") as exc_info:
            await client.request_route(_START, _END)

    assert exc_info.value.status_code == 500
    assert len(provider.requests) == directions.MAX_REQUEST_ATTEMPTS
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_client_error_is_not_retried():
    sleep = _SleepRecorder()
    provider = _ScriptedProvider(
        [(400, {"error": {"code": 2004, "message": "Route distance too long"}})]
    )
    async with _client(provider, sleep) as client:
        with pytest.raises(RoutingProviderError, match="Route distance too long"):
            await client.request_route(_START, _END)

    assert len(provider.requests) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_error_without_body_message_is_generic():
    def provider(request):
        return httpx.Response(403, text="forbidden")

    async with _client(provider) as client:
        with pytest.raises(RoutingProviderError, match="Unknown error"):
            await client.request_route(_START, _END)


@pytest.mark.asyncio
async def test_non_json_success_body_is_a_provider_error():
    sleep = _SleepRecorder()
    requests = []

    def provider(request):
        requests.append(request)
        return httpx.Response(200, text="<html>gateway</html>")

    async with _client(provider, sleep) as client:
        with pytest.raises(RoutingProviderError, match="not valid JSON") as exc_info:
            await client.request_route(_START, _END)

    assert exc_info.value.status_code == 200
    assert len(requests) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_success_with_top_level_array_raises_no_geometry():
    provider = _ScriptedProvider([(200, [])])
    async with _client(provider) as client:
        with pytest.raises(NoGeometryError):
            await client.request_route(_START, _END)


@pytest.mark.asyncio
async def test_top_level_message_is_used():
    provider = _ScriptedProvider([(401, {"message": "Access to this API has been disallowed"})])
    async with _client(provider) as client:
        with pytest.raises(RoutingProviderError, match="disallowed"):
            await client.request_route(_START, _END)


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    def provider(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(provider) as client:
        with pytest.raises(RoutingProviderError, match="connection refused"):
            await client.request_route(_START, _END)


@pytest.mark.asyncio
async def test_passed_in_http_client_is_not_closed():
    http_client = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=_GEOJSON_OK))
    )
    async with DirectionsClient(api_key="K", http_client=http_client):
        pass
    assert not http_client.is_closed
    await http_client.aclose()
