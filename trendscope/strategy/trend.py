"""Trend detection — primary EMA50 bias and higher-timeframe classification.

Provides two detection modes:
- ``primary_trend()``: price versus EMA50 on the primary timeframe.
- ``detect_higher_trend()``: price versus EMA200 and the Ichimoku cloud on
  the higher timeframe, graded into five states.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from trendscope.strategy.indicators import calculate_ema, calculate_ichimoku
from trendscope.strategy.models import Bar, HigherTrend, IchimokuCloud, Trend

# The higher timeframe is only trusted with more bars than this.
MIN_TREND_BARS = 50


@dataclass(frozen=True)
class HigherTrendState:
    """Snapshot of the higher-timeframe trend and the values behind it."""

    direction: HigherTrend
    ema200: Optional[float] = None
    ichimoku: Optional[IchimokuCloud] = None


def primary_trend(current_price: float, closes: Sequence[float]) -> tuple[Trend, float]:
    """Return ``("UP" | "DOWN", ema50)`` for the primary timeframe."""
    ema50 = calculate_ema(closes, 50)[-1]
    return ("UP" if current_price > ema50 else "DOWN"), ema50


def detect_higher_trend(
    current_price: float,
    trend_bars: Sequence[Bar],
) -> HigherTrendState:
    """Classify the higher-timeframe trend.

    Rules:
        - **STRONG_UP**: price > EMA200 and above both Ichimoku spans.
        - **UP**: price > EMA200 only.
        - **STRONG_DOWN**: price <= EMA200 and below both spans.
        - **DOWN**: price <= EMA200 only.
        - **NEUTRAL**: ``MIN_TREND_BARS`` or fewer bars available.
    """
    if len(trend_bars) <= MIN_TREND_BARS:
        return HigherTrendState(direction="NEUTRAL")

    closes = [b.close for b in trend_bars]
    ema200 = calculate_ema(closes, 200)[-1]
    cloud = calculate_ichimoku(trend_bars)
    has_cloud = (
        cloud is not None
        and cloud.span_a is not None
        and cloud.span_b is not None
    )

    if current_price > ema200:
        if has_cloud and current_price > max(cloud.span_a, cloud.span_b):
            direction = "STRONG_UP"
        else:
            direction = "UP"
    else:
        if has_cloud and current_price < min(cloud.span_a, cloud.span_b):
            direction = "STRONG_DOWN"
        else:
            direction = "DOWN"

    return HigherTrendState(direction=direction, ema200=ema200, ichimoku=cloud)
