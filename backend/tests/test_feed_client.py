import httpx
import pytest
from httpx import ASGITransport

from app.clients.signal_feed import SignalFeedClient, SignalFeedError
from app.main import app

BASE_URL = "http://feed.test/api/v1"


def _signal_payload(make_signal, *ids: str) -> dict:
    return {"signals": [make_signal(signal_id).model_dump(mode="json") for signal_id in ids]}


async def test_watch_yields_each_signal_once(make_signal):
    responses = iter(
        [
            _signal_payload(make_signal, "signal-1", "signal-2"),
            _signal_payload(make_signal, "signal-2", "signal-3"),
        ]
    )
    seen_params: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_params.append(dict(request.url.params))
        return httpx.Response(200, json=next(responses))

    async with SignalFeedClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
        ids = [signal.id async for signal in client.watch(interval_seconds=0, sport="NBA", max_polls=2)]

    assert ids == ["signal-1", "signal-2", "signal-3"]
    assert seen_params == [{"sport": "NBA"}, {"sport": "NBA"}]


async def test_watch_survives_a_failed_poll(make_signal):
    calls = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(500, json={"detail": "Internal server error"})
        return httpx.Response(200, json=_signal_payload(make_signal, "signal-9"))

    async with SignalFeedClient(BASE_URL, retry_attempts=0, transport=httpx.MockTransport(handler)) as client:
        ids = [signal.id async for signal in client.watch(interval_seconds=0, max_polls=2)]

    assert ids == ["signal-9"]


async def test_retries_transient_status_then_succeeds():
    statuses = iter([503, 429, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        status = next(statuses)
        if status != 200:
            return httpx.Response(status)
        return httpx.Response(200, json={"success": True, "markets": 25, "signals": 7})

    async with SignalFeedClient(
        BASE_URL, retry_attempts=3, backoff_seconds=0, transport=httpx.MockTransport(handler)
    ) as client:
        result = await client.initialize()

    assert result.markets == 25
    assert result.signals == 7


async def test_client_error_raises_with_status_and_detail():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"detail": "Market not found"})

    async with SignalFeedClient(BASE_URL, backoff_seconds=0, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(SignalFeedError) as excinfo:
            await client.fetch_market("market-404")

    assert excinfo.value.status_code == 404
    assert "Market not found" in str(excinfo.value)


async def test_transport_errors_exhaust_retries():
    attempts = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["n"] += 1
        raise httpx.ConnectError("connection refused", request=request)

    async with SignalFeedClient(
        BASE_URL, retry_attempts=2, backoff_seconds=0, transport=httpx.MockTransport(handler)
    ) as client:
        with pytest.raises(SignalFeedError) as excinfo:
            await client.fetch_signals()

    assert attempts["n"] == 3
    assert excinfo.value.status_code is None


async def test_client_against_running_app(db_session, make_market, store_records):
    await store_records(make_market(4, volatility=0.8, sport="NFL"))

    async with SignalFeedClient("http://test/api/v1", transport=ASGITransport(app=app)) as client:
        market = await client.fetch_market("market-4")
        assert market.market.sport == "NFL"
        assert len(market.books) == 5

        assert await client.fetch_signals() == []


async def test_watch_survives_malformed_responses(make_signal):
    bodies = iter(
        [
            httpx.Response(200, text="<html>upstream proxy error</html>"),
            httpx.Response(200, json={"signals": [{"id": "signal-broken"}]}),
            httpx.Response(200, json=_signal_payload(make_signal, "signal-ok")),
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return next(bodies)

    async with SignalFeedClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
        ids = [signal.id async for signal in client.watch(interval_seconds=0, max_polls=3)]

    assert ids == ["signal-ok"]


async def test_malformed_market_payload_raises_feed_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"market": {"market_id": "market-1"}})

    async with SignalFeedClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(SignalFeedError) as excinfo:
            await client.fetch_market("market-1")

    assert "/markets/market-1" in str(excinfo.value)


async def test_non_json_body_raises_feed_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    async with SignalFeedClient(BASE_URL, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(SignalFeedError) as excinfo:
            await client.initialize()

    assert excinfo.value.status_code == 200
