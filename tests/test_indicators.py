"""Deterministic tests for the indicator library.

Covers: SMA, EMA, standard deviation, RSI, MACD, Bollinger Bands, ATR,
the ADX slope proxy, pivots, Ichimoku, volume analysis and candle
patterns, including the short-history degradation rules.
"""

import math

import pytest

from trendscope.strategy.indicators import (
    BEARISH_ENGULFING,
    BULLISH_ENGULFING,
    HAMMER,
    SHOOTING_STAR,
    analyze_volume,
    calculate_adx_proxy,
    calculate_atr,
    calculate_bollinger,
    calculate_ema,
    calculate_ichimoku,
    calculate_macd,
    calculate_pivot_points,
    calculate_rsi,
    calculate_sma,
    calculate_std_dev,
    detect_patterns,
)
from trendscope.strategy.models import Bar


# ── Helpers ──────────────────────────────────────────────────────────────


def _bar(close, o=None, h=None, l=None, vol=1000.0, time=0.0):
    o = close if o is None else o
    h = max(o, close) if h is None else h
    l = min(o, close) if l is None else l
    return Bar(time=time, open=o, high=h, low=l, close=close, volume=vol)


def _flat_bars(n: int = 60, price: float = 100.0) -> list[Bar]:
    return [_bar(price, time=i * 3600.0) for i in range(n)]


def _linear_bars(n: int, start: float, step: float) -> list[Bar]:
    return [
        _bar(start + i * step, o=start + i * step - step / 2, time=i * 3600.0)
        for i in range(n)
    ]


# ════════════════════════════════════════════════════════════════════════
# Moving averages
# ════════════════════════════════════════════════════════════════════════


class TestSMA:
    def test_prefix_is_none(self):
        sma = calculate_sma([1, 2, 3, 4, 5], 3)
        assert sma[:2] == [None, None]

    def test_trailing_mean(self):
        sma = calculate_sma([1, 2, 3, 4, 5], 3)
        assert sma[2:] == [pytest.approx(2.0), pytest.approx(3.0), pytest.approx(4.0)]

    def test_short_series_all_none(self):
        assert calculate_sma([1, 2], 5) == [None, None]


class TestEMA:
    def test_seeded_from_first_value(self):
        ema = calculate_ema([10.0, 20.0, 30.0], 3)
        # k = 0.5
        assert ema[0] == 10.0
        assert ema[1] == pytest.approx(15.0)
        assert ema[2] == pytest.approx(22.5)

    def test_single_point(self):
        assert calculate_ema([42.0], 50) == [42.0]

    def test_empty(self):
        assert calculate_ema([], 10) == []

    def test_same_length_as_input(self):
        assert len(calculate_ema(list(range(30)), 12)) == 30


class TestStdDev:
    def test_population_std(self):
        values = [2, 4, 4, 4, 5, 5, 7, 9]
        sma = calculate_sma(values, 8)
        std = calculate_std_dev(values, 8, sma)
        assert std[-1] == pytest.approx(2.0)
        assert std[0] is None


# ════════════════════════════════════════════════════════════════════════
# RSI
# ════════════════════════════════════════════════════════════════════════


class TestRSI:
    def test_insufficient_data_returns_50(self):
        assert calculate_rsi([1.0] * 14) == 50.0

    def test_all_equal_prices_return_100(self):
        """Zero deltas count as zero gains; avg loss is exactly 0 → 100."""
        assert calculate_rsi([100.0] * 60) == 100.0

    def test_all_rising_returns_100(self):
        assert calculate_rsi([float(i) for i in range(30)]) == 100.0

    def test_all_falling_returns_0(self):
        assert calculate_rsi([float(30 - i) for i in range(30)]) == pytest.approx(0.0)

    def test_only_last_period_deltas_used(self):
        # A large early drop must not influence the result.
        prices = [200.0, 100.0] + [100.0 + i for i in range(15)]
        assert calculate_rsi(prices) == 100.0

    def test_known_value(self):
        # 13 alternating ±0.5 deltas then -10: gains 3.0, losses 13.5
        prices = [100.0 if i % 2 == 0 else 100.5 for i in range(39)] + [90.0]
        rs = 3.0 / 13.5
        assert calculate_rsi(prices) == pytest.approx(100 - 100 / (1 + rs))

    def test_bounded(self):
        prices = [100 + 10 * math.sin(i / 3) for i in range(100)]
        for end in range(1, 100):
            assert 0.0 <= calculate_rsi(prices[:end]) <= 100.0


# ════════════════════════════════════════════════════════════════════════
# MACD / Bollinger
# ════════════════════════════════════════════════════════════════════════


class TestMACD:
    def test_constant_prices_are_zero(self):
        macd = calculate_macd([50.0] * 40)
        assert macd.macd == pytest.approx(0.0)
        assert macd.signal == pytest.approx(0.0)
        assert macd.histogram == pytest.approx(0.0)

    def test_histogram_is_line_minus_signal(self):
        prices = [100 + i * 0.5 + (i % 3) for i in range(60)]
        macd = calculate_macd(prices)
        assert macd.histogram == pytest.approx(macd.macd - macd.signal)

    def test_uptrend_line_positive(self):
        macd = calculate_macd([100 + i for i in range(100)])
        assert macd.macd > 0


class TestBollinger:
    def test_known_bands(self):
        prices = [float(i) for i in range(1, 21)]
        bb = calculate_bollinger(prices)
        sigma = math.sqrt((20 ** 2 - 1) / 12)
        assert bb.middle == pytest.approx(10.5)
        assert bb.upper == pytest.approx(10.5 + 2 * sigma)
        assert bb.lower == pytest.approx(10.5 - 2 * sigma)

    def test_flat_prices_zero_width(self):
        bb = calculate_bollinger([100.0] * 60)
        assert bb.upper == bb.middle == bb.lower == 100.0

    def test_short_series_collapses_to_last_price(self):
        bb = calculate_bollinger([1.0, 2.0, 3.0])
        assert bb.upper == bb.middle == bb.lower == 3.0


# ════════════════════════════════════════════════════════════════════════
# ATR / ADX proxy
# ════════════════════════════════════════════════════════════════════════


class TestATR:
    def test_insufficient_data_returns_zero(self):
        assert calculate_atr(_flat_bars(14)) == 0.0

    def test_constant_range(self):
        bars = [_bar(100.0, h=101.0, l=99.0) for _ in range(20)]
        assert calculate_atr(bars) == pytest.approx(2.0)

    def test_wilder_smoothing_after_seed(self):
        bars = [_bar(100.0, h=100.5, l=99.5) for _ in range(15)]
        # Seed: 14 true ranges of 1.0; then one TR of 15.0
        bars.append(_bar(100.0, h=110.0, l=95.0))
        assert calculate_atr(bars) == pytest.approx((1.0 * 13 + 15.0) / 14)

    def test_gap_uses_previous_close(self):
        bars = [_bar(100.0) for _ in range(14)] + [_bar(110.0, h=110.0, l=110.0)]
        # 13 zero TRs + one TR of |110 - 100|
        assert calculate_atr(bars) == pytest.approx(10.0 / 14)

    def test_never_negative(self):
        bars = _linear_bars(50, 100.0, -1.0)
        assert calculate_atr(bars) >= 0.0


class TestADXProxy:
    def test_flat_market_is_zero(self):
        assert calculate_adx_proxy(_flat_bars(60)) == 0.0

    def test_short_series_is_zero_not_none(self):
        assert calculate_adx_proxy(_flat_bars(3)) == 0.0
        assert calculate_adx_proxy(_linear_bars(10, 100.0, 5.0)) == 0.0
        assert calculate_adx_proxy(_linear_bars(13, 100.0, 5.0)) == 0.0

    def test_linear_trend_value(self):
        bars = _linear_bars(250, 50.0, 2.0)
        # SMA(10) rises 2 per bar → (8 / 5) / 548 × 10000
        assert calculate_adx_proxy(bars) == pytest.approx(1.6 / 548 * 10000)

    def test_downtrend_uses_absolute_slope(self):
        up = calculate_adx_proxy(_linear_bars(60, 100.0, 1.0))
        down = calculate_adx_proxy(_linear_bars(60, 200.0, -1.0))
        assert up > 0
        assert down > 0

    def test_clamped_at_100(self):
        bars = _linear_bars(20, 1.0, 10.0)
        assert calculate_adx_proxy(bars) == 100.0


# ════════════════════════════════════════════════════════════════════════
# Levels
# ════════════════════════════════════════════════════════════════════════


class TestPivotPoints:
    def test_classic_pivots(self):
        p = calculate_pivot_points(high=110.0, low=90.0, close=100.0)
        assert p.pp == pytest.approx(100.0)
        assert p.r1 == pytest.approx(110.0)
        assert p.s1 == pytest.approx(90.0)
        assert p.r2 == pytest.approx(120.0)
        assert p.s2 == pytest.approx(80.0)


class TestIchimoku:
    def _ladder(self, n):
        return [
            Bar(time=i * 3600.0, open=i + 0.5, high=i + 1.0, low=float(i),
                close=i + 0.5, volume=1.0)
            for i in range(n)
        ]

    def test_insufficient_bars(self):
        assert calculate_ichimoku(self._ladder(51)) is None

    def test_known_values(self):
        cloud = calculate_ichimoku(self._ladder(60))
        assert cloud.tenkan == pytest.approx((60 + 51) / 2)
        assert cloud.kijun == pytest.approx((60 + 34) / 2)
        # Displaced 26 bars back (index 33)
        assert cloud.span_a == pytest.approx(((34 + 25) / 2 + (34 + 8) / 2) / 2)
        assert cloud.span_b == pytest.approx((34 + 0) / 2)


# ════════════════════════════════════════════════════════════════════════
# Volume / patterns
# ════════════════════════════════════════════════════════════════════════


class TestVolume:
    def test_ratio_against_prior_mean(self):
        bars = [_bar(1.0, vol=100.0) for _ in range(5)] + [_bar(1.0, vol=250.0)]
        vol = analyze_volume(bars)
        assert vol.ratio == pytest.approx(2.5)
        assert vol.is_spike is True

    def test_exactly_double_is_not_spike(self):
        bars = [_bar(1.0, vol=100.0), _bar(1.0, vol=200.0)]
        assert analyze_volume(bars).is_spike is False

    def test_single_bar(self):
        vol = analyze_volume([_bar(1.0)])
        assert vol.ratio == 0.0
        assert vol.is_spike is False

    def test_zero_prior_volume(self):
        bars = [_bar(1.0, vol=0.0), _bar(1.0, vol=50.0)]
        assert analyze_volume(bars).is_spike is False


class TestPatterns:
    def test_hammer(self):
        bar = _bar(101.0, o=100.0, h=101.2, l=97.0)
        assert detect_patterns([bar]) == (HAMMER,)

    def test_shooting_star(self):
        bar = _bar(100.0, o=101.0, h=104.0, l=99.8)
        assert detect_patterns([bar]) == (SHOOTING_STAR,)

    def test_bullish_engulfing(self):
        prev = _bar(99.0, o=100.0, h=100.2, l=98.8)
        cur = _bar(101.0, o=98.5, h=101.2, l=98.4)
        assert BULLISH_ENGULFING in detect_patterns([prev, cur])

    def test_bearish_engulfing(self):
        prev = _bar(101.0, o=100.0, h=101.2, l=99.8)
        cur = _bar(99.0, o=101.5, h=101.6, l=98.9)
        assert BEARISH_ENGULFING in detect_patterns([prev, cur])

    def test_plain_bar_has_no_pattern(self):
        prev = _bar(100.0, o=99.0, h=100.5, l=98.5)
        cur = _bar(101.0, o=100.0, h=101.5, l=99.5)
        assert detect_patterns([prev, cur]) == ()

    def test_doji_without_range_has_no_pattern(self):
        assert detect_patterns(_flat_bars(2)) == ()
