"""Binance public REST API async client.

Fetches klines and spot prices for the signal engine, the scanner and the
optimizer.  Only public market-data endpoints are used; no keys, no
orders.
"""

import asyncio
import logging
from typing import Optional

import httpx

from trendscope.config import Config
from trendscope.strategy.models import Bar

logger = logging.getLogger("trendscope")

# Retry settings
_MAX_RETRIES = 3
_RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt
_RETRYABLE_STATUS_CODES = {502, 503, 504, 429}


class BinanceClient:
    """Async client wrapping the Binance spot market-data endpoints.

    Implements ``BarFeed``.
    """

    def __init__(self, config: Config) -> None:
        self._config = config
        self._base_url = config.binance_base_url.rstrip("/")

    # ── HTTP ─────────────────────────────────────────────────────────────

    async def _get_with_retry(self, url: str, params: dict) -> httpx.Response:
        """GET *url*, backing off exponentially on Binance overload.

        429 (request weight exceeded), 502, 503, 504 and transport errors
        are retried up to ``_MAX_RETRIES`` times; any other HTTP error is
        raised on the first attempt.
        """
        last_exc: Optional[Exception] = None

        for attempt in range(_MAX_RETRIES):
            try:
                async with httpx.AsyncClient() as client:
                    resp = await client.get(url, params=params, timeout=30.0)

                if resp.status_code in _RETRYABLE_STATUS_CODES:
                    delay = _RETRY_BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        "Binance GET %s returned %d — retry %d/%d in %.1fs",
                        url, resp.status_code, attempt + 1, _MAX_RETRIES, delay,
                    )
                    await asyncio.sleep(delay)
                    last_exc = httpx.HTTPStatusError(
                        f"Server error '{resp.status_code}'",
                        request=resp.request,
                        response=resp,
                    )
                    continue

                resp.raise_for_status()
                return resp

            except httpx.TransportError as exc:
                delay = _RETRY_BASE_DELAY * (2 ** attempt)
                logger.warning(
                    "Binance GET %s transport error (%s) — retry %d/%d in %.1fs",
                    url, exc, attempt + 1, _MAX_RETRIES, delay,
                )
                last_exc = exc
                await asyncio.sleep(delay)

        # Out of attempts
        raise last_exc  # type: ignore[misc]

    # ── Market data ──────────────────────────────────────────────────────

    async def fetch_bars(
        self,
        symbol: str,
        interval: str = "1h",
        limit: int = 100,
    ) -> list[Bar]:
        """Fetch klines for *symbol*.

        Args:
            symbol: e.g. ``"BTCUSDT"``
            interval: e.g. ``"1h"``, ``"4h"``, ``"15m"``
            limit: number of klines to request (max 1000)

        Returns:
            List of ``Bar`` objects ordered oldest-first, ``time`` in
            epoch seconds.
        """
        url = f"{self._base_url}/api/v3/klines"
        params = {"symbol": symbol, "interval": interval, "limit": limit}

        resp = await self._get_with_retry(url, params)

        # Kline row: [open time (ms), open, high, low, close, volume, ...]
        return [
            Bar(
                time=row[0] / 1000,
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=float(row[5]),
            )
            for row in resp.json()
        ]

    async def fetch_price(self, symbol: str) -> float:
        """Latest traded price for *symbol*."""
        url = f"{self._base_url}/api/v3/ticker/price"
        resp = await self._get_with_retry(url, {"symbol": symbol})
        return float(resp.json()["price"])
