"""
Async HTTP client for the Signalry API.

Provides ``SignalFeedClient`` with:
- Configurable base URL and timeout
- Automatic retries with exponential back-off for 429 / 5xx transient errors
  and transport failures
- ``watch()``, which polls the signal feed on a timer and yields each signal
  the first time it appears
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from app.core.config import get_settings
from app.schemas.market import MarketDetailOut
from app.schemas.signal import InitOut, Signal

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429, 502, 503, 504}


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and "detail" in body:
        return str(body["detail"])
    return resp.text


class SignalFeedError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _parse(model: type[BaseModel], payload: Any, path: str):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise SignalFeedError(f"{path} returned an unexpected payload: {exc.error_count()} invalid field(s)") from exc


class SignalFeedClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        retry_attempts: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.retry_attempts = settings.feed_retry_attempts if retry_attempts is None else retry_attempts
        self.backoff_seconds = settings.feed_retry_backoff_seconds if backoff_seconds is None else backoff_seconds
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.feed_base_url).rstrip("/"),
            headers={"Accept": "application/json", "User-Agent": "signalry-feed/0.1.0"},
            timeout=settings.feed_timeout_seconds if timeout is None else timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "SignalFeedClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        # Drop unset filters so we never send e.g. ?sport=None
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}

        for attempt in range(self.retry_attempts + 1):
            try:
                resp = await self._client.request(method, path, params=clean_params or None, json=json)
            except httpx.TransportError as exc:
                if attempt >= self.retry_attempts:
                    raise SignalFeedError(f"{method} {path} failed: {exc}") from exc
                wait = self.backoff_seconds * (2**attempt)
                logger.warning(
                    "Signal feed transport error; retrying",
                    extra={"path": path, "attempt": attempt + 1, "wait_seconds": wait},
                )
                await asyncio.sleep(wait)
                continue

            if resp.status_code in _RETRYABLE_STATUS and attempt < self.retry_attempts:
                wait = self.backoff_seconds * (2**attempt)
                logger.warning(
                    "Signal feed returned retryable status",
                    extra={"path": path, "status": resp.status_code, "attempt": attempt + 1, "wait_seconds": wait},
                )
                await asyncio.sleep(wait)
                continue

            if resp.is_error:
                raise SignalFeedError(
                    f"{method} {path} returned {resp.status_code}: {_error_detail(resp)}",
                    resp.status_code,
                )
            try:
                return resp.json()
            except ValueError as exc:
                raise SignalFeedError(f"{method} {path} returned a non-JSON body", resp.status_code) from exc

        raise SignalFeedError(f"{method} {path} exhausted retries")

    async def initialize(self) -> InitOut:
        return _parse(InitOut, await self._request("POST", "/init"), "/init")

    async def fetch_signals(
        self,
        *,
        sport: str | None = None,
        market_type: str | None = None,
        min_confidence: str | None = None,
    ) -> list[Signal]:
        payload = await self._request(
            "GET",
            "/signals",
            params={"sport": sport, "market_type": market_type, "min_confidence": min_confidence},
        )
        if not isinstance(payload, dict):
            raise SignalFeedError("/signals returned an unexpected payload")
        return [_parse(Signal, item, "/signals") for item in payload.get("signals") or []]

    async def fetch_market(self, market_id: str) -> MarketDetailOut:
        path = f"/markets/{market_id}"
        return _parse(MarketDetailOut, await self._request("GET", path), path)

    async def watch(
        self,
        *,
        interval_seconds: float | None = None,
        sport: str | None = None,
        market_type: str | None = None,
        min_confidence: str | None = None,
        max_polls: int | None = None,
    ) -> AsyncIterator[Signal]:
        """Poll the feed, yielding signals not seen on an earlier poll.

        A failed poll is logged and retried on the next tick.
        """
        interval = get_settings().feed_refresh_seconds if interval_seconds is None else interval_seconds
        seen: set[str] = set()
        polls = 0
        while max_polls is None or polls < max_polls:
            polls += 1
            try:
                signals = await self.fetch_signals(
                    sport=sport,
                    market_type=market_type,
                    min_confidence=min_confidence,
                )
            except SignalFeedError:
                logger.exception("Signal feed poll failed", extra={"poll": polls})
                signals = []

            for signal in signals:
                if signal.id in seen:
                    continue
                seen.add(signal.id)
                yield signal

            if max_polls is None or polls < max_polls:
                await asyncio.sleep(interval)
