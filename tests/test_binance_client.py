"""Tests for trendscope.feeds.binance_client — Binance client with mocked HTTP responses."""

import httpx
import pytest

from trendscope.config import Config
from trendscope.feeds import binance_client
from trendscope.feeds.base import BarFeed
from trendscope.feeds.binance_client import BinanceClient
from trendscope.strategy.models import Bar


def _make_config() -> Config:
    return Config(
        binance_base_url="https://api.binance.test/",
        primary_interval="1h",
        trend_interval="4h",
        history_limit=1000,
        live_min_score=4.0,
        backtest_min_score=3.0,
        warmup_bars=200,
        initial_balance=10_000.0,
        optimizer_workers=1,
        log_level="INFO",
    )


# ── Mock Binance responses ───────────────────────────────────────────────

MOCK_KLINES_RESPONSE = [
    [1700006400000, "37000.10", "37250.00", "36900.50", "37100.00", "812.5",
     1700009999999, "30100000.0", 15000, "400.1", "14800000.0", "0"],
    [1700010000000, "37100.00", "37300.00", "37050.00", "37280.40", "640.0",
     1700013599999, "23800000.0", 12000, "300.0", "11200000.0", "0"],
]

MOCK_PRICE_RESPONSE = {"symbol": "BTCUSDT", "price": "37281.55000000"}


@pytest.fixture
def no_sleep(monkeypatch):
    async def _sleep(delay):
        return None

    monkeypatch.setattr(binance_client.asyncio, "sleep", _sleep)


# ── Tests ────────────────────────────────────────────────────────────────


def test_implements_bar_feed():
    assert isinstance(BinanceClient(_make_config()), BarFeed)


@pytest.mark.asyncio
async def test_parse_klines(monkeypatch):
    """Bars populated from kline rows, times converted to seconds."""
    client = BinanceClient(_make_config())
    captured = {}

    async def _mock_get(self, url, *, params=None, timeout=None):
        captured["url"] = url
        captured["params"] = params
        return httpx.Response(200, json=MOCK_KLINES_RESPONSE, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    bars = await client.fetch_bars("BTCUSDT", "1h", limit=2)

    assert captured["url"] == "https://api.binance.test/api/v3/klines"
    assert captured["params"] == {"symbol": "BTCUSDT", "interval": "1h", "limit": 2}
    assert len(bars) == 2
    b = bars[0]
    assert isinstance(b, Bar)
    assert b.time == 1_700_006_400.0
    assert b.open == pytest.approx(37000.1)
    assert b.high == pytest.approx(37250.0)
    assert b.low == pytest.approx(36900.5)
    assert b.close == pytest.approx(37100.0)
    assert b.volume == pytest.approx(812.5)
    assert bars[1].time > bars[0].time


@pytest.mark.asyncio
async def test_fetch_price(monkeypatch):
    client = BinanceClient(_make_config())

    async def _mock_get(self, url, *, params=None, timeout=None):
        assert url.endswith("/api/v3/ticker/price")
        assert params == {"symbol": "BTCUSDT"}
        return httpx.Response(200, json=MOCK_PRICE_RESPONSE, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    assert await client.fetch_price("BTCUSDT") == pytest.approx(37281.55)


@pytest.mark.asyncio
async def test_retries_transient_status(monkeypatch, no_sleep):
    """A 503 followed by a 200 succeeds on the second attempt."""
    client = BinanceClient(_make_config())
    calls = []

    async def _mock_get(self, url, *, params=None, timeout=None):
        calls.append(url)
        status = 503 if len(calls) == 1 else 200
        return httpx.Response(status, json=MOCK_PRICE_RESPONSE, request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    assert await client.fetch_price("BTCUSDT") == pytest.approx(37281.55)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_retries_exhausted_raises(monkeypatch, no_sleep):
    client = BinanceClient(_make_config())

    async def _mock_get(self, url, *, params=None, timeout=None):
        raise httpx.ConnectError("connection refused", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(httpx.ConnectError):
        await client.fetch_bars("BTCUSDT")


@pytest.mark.asyncio
async def test_client_error_not_retried(monkeypatch, no_sleep):
    """A 400 (e.g. unknown symbol) raises immediately."""
    client = BinanceClient(_make_config())
    calls = []

    async def _mock_get(self, url, *, params=None, timeout=None):
        calls.append(url)
        return httpx.Response(
            400, json={"code": -1121, "msg": "Invalid symbol."},
            request=httpx.Request("GET", url),
        )

    monkeypatch.setattr(httpx.AsyncClient, "get", _mock_get)

    with pytest.raises(httpx.HTTPStatusError):
        await client.fetch_bars("NOPEUSDT")
    assert len(calls) == 1
