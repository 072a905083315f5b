"""Technical indicators — SMA, EMA, RSI, MACD, Bollinger, ATR, ADX proxy,
pivots, Ichimoku, volume and candle patterns. Pure functions, no I/O.

Several formulas are deliberately simplified versions of their textbook
counterparts (RSI without Wilder smoothing, EMA seeded from the first
value, ADX replaced by a normalised SMA slope).  Strategy thresholds are
tuned against these exact definitions.

None of these functions raise on short input; each degrades to a neutral
value instead so that signal evaluation is total over any non-empty series.
"""

import math
from typing import Optional, Sequence

from trendscope.strategy.models import (
    Bar,
    BollingerBands,
    IchimokuCloud,
    MACDResult,
    PivotPoints,
    VolumeAnalysis,
)

# Pattern tags produced by ``detect_patterns``.
HAMMER = "Hammer/Pinbar"
SHOOTING_STAR = "Shooting Star"
BULLISH_ENGULFING = "Bullish Engulfing"
BEARISH_ENGULFING = "Bearish Engulfing"

BULLISH_PATTERNS = frozenset({HAMMER, BULLISH_ENGULFING})
BEARISH_PATTERNS = frozenset({SHOOTING_STAR, BEARISH_ENGULFING})


# ── Moving averages ──────────────────────────────────────────────────────


def calculate_sma(values: Sequence[float], period: int) -> list[Optional[float]]:
    """Simple moving average series.

    Entries with fewer than *period* points of history are ``None``.
    """
    sma: list[Optional[float]] = []
    for i in range(len(values)):
        if i < period - 1:
            sma.append(None)
            continue
        window = values[i - period + 1 : i + 1]
        sma.append(sum(window) / period)
    return sma


def calculate_ema(values: Sequence[float], period: int) -> list[float]:
    """Exponential moving average series, ``k = 2 / (period + 1)``.

    Seeded with the first value rather than an SMA warm-up, so early
    values are biased toward ``values[0]``.  Same length as *values*.
    """
    if not values:
        return []
    k = 2.0 / (period + 1)
    ema = [float(values[0])]
    for i in range(1, len(values)):
        ema.append(values[i] * k + ema[i - 1] * (1 - k))
    return ema


def calculate_std_dev(
    values: Sequence[float],
    period: int,
    sma: Sequence[Optional[float]],
) -> list[Optional[float]]:
    """Population standard deviation around the aligned *sma* value."""
    std: list[Optional[float]] = []
    for i in range(len(values)):
        mean = sma[i]
        if i < period - 1 or mean is None:
            std.append(None)
            continue
        window = values[i - period + 1 : i + 1]
        variance = sum((x - mean) ** 2 for x in window) / period
        std.append(math.sqrt(variance))
    return std


# ── Oscillators ──────────────────────────────────────────────────────────


def calculate_rsi(prices: Sequence[float], period: int = 14) -> float:
    """Relative Strength Index of the latest price.

    Averages gains and losses over the last *period* deltas only (no
    Wilder smoothing).  A zero delta counts as a zero gain.

    Returns 50 with fewer than ``period + 1`` prices and 100 when the
    average loss is exactly zero.
    """
    if len(prices) < period + 1:
        return 50.0

    gains = 0.0
    losses = 0.0
    for i in range(len(prices) - period, len(prices)):
        delta = prices[i] - prices[i - 1]
        if delta >= 0:
            gains += delta
        else:
            losses -= delta

    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def calculate_macd(prices: Sequence[float]) -> MACDResult:
    """MACD(12, 26, 9) of the latest price."""
    if not prices:
        return MACDResult(macd=0.0, signal=0.0, histogram=0.0)

    ema12 = calculate_ema(prices, 12)
    ema26 = calculate_ema(prices, 26)
    macd_line = [fast - slow for fast, slow in zip(ema12, ema26)]
    signal_line = calculate_ema(macd_line, 9)

    macd = macd_line[-1]
    signal = signal_line[-1]
    return MACDResult(macd=macd, signal=signal, histogram=macd - signal)


def calculate_bollinger(
    prices: Sequence[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerBands:
    """Bollinger Bands at the latest price.

    Middle = SMA(*period*), upper/lower = middle ± *std_dev* × σ.  With
    fewer than *period* prices all three bands collapse onto the latest
    price.
    """
    if not prices:
        return BollingerBands(upper=0.0, middle=0.0, lower=0.0)
    if len(prices) < period:
        last = float(prices[-1])
        return BollingerBands(upper=last, middle=last, lower=last)

    sma = calculate_sma(prices, period)
    std = calculate_std_dev(prices, period, sma)
    middle = sma[-1]
    sigma = std[-1]
    return BollingerBands(
        upper=middle + sigma * std_dev,
        middle=middle,
        lower=middle - sigma * std_dev,
    )


# ── Volatility / trend strength ──────────────────────────────────────────


def calculate_true_range(high: float, low: float, prev_close: float) -> float:
    """TR = max(high - low, |high - prev_close|, |low - prev_close|)."""
    return max(high - low, abs(high - prev_close), abs(low - prev_close))


def calculate_atr(bars: Sequence[Bar], period: int = 14) -> float:
    """Average True Range of the latest bar.

    Seeds with the mean of the first *period* true ranges, then applies
    Wilder smoothing ``atr = (atr × (period − 1) + tr) / period`` for
    every later bar.  Returns 0 with fewer than ``period + 1`` bars.
    """
    if len(bars) < period + 1:
        return 0.0

    true_ranges = [
        calculate_true_range(bars[i].high, bars[i].low, bars[i - 1].close)
        for i in range(1, len(bars))
    ]

    atr = sum(true_ranges[:period]) / period
    for tr in true_ranges[period:]:
        atr = (atr * (period - 1) + tr) / period
    return atr


def calculate_adx_proxy(bars: Sequence[Bar], period: int = 14) -> float:
    """Trend-strength proxy on a 0–100 scale.

    Not Wilder's ADX: the slope of SMA(10) across its last five points,
    normalised by the latest close × 10000 and clamped at 100.  *period*
    is accepted for signature parity and does not affect the result.

    Returns 0.0 when the SMA has no value four points back.
    """
    closes = [b.close for b in bars]
    if len(closes) < 5:
        return 0.0

    sma10 = calculate_sma(closes, 10)
    latest = sma10[-1]
    earlier = sma10[-5]
    last_close = closes[-1]
    if latest is None or earlier is None or last_close == 0:
        return 0.0

    slope = (latest - earlier) / 5
    return min(100.0, abs(slope) / last_close * 10000)


# ── Levels ───────────────────────────────────────────────────────────────


def calculate_pivot_points(high: float, low: float, close: float) -> PivotPoints:
    """Classic floor-trader pivots."""
    pp = (high + low + close) / 3
    return PivotPoints(
        pp=pp,
        r1=2 * pp - low,
        s1=2 * pp - high,
        r2=pp + (high - low),
        s2=pp - (high - low),
    )


def _midpoint(bars: Sequence[Bar], period: int, idx: int) -> float:
    """Midpoint of the highest high and lowest low over *period* bars ending at *idx*."""
    start = max(0, idx - period + 1)
    window = bars[start : idx + 1]
    highest = max(b.high for b in window)
    lowest = min(b.low for b in window)
    return (highest + lowest) / 2


def calculate_ichimoku(bars: Sequence[Bar]) -> Optional[IchimokuCloud]:
    """Ichimoku cloud at the latest bar.

    Tenkan (9) and Kijun (26) are evaluated at the latest bar.  Span A
    and Span B (52) are evaluated 26 bars back, i.e. the cloud projected
    onto the current bar.

    Returns ``None`` with fewer than 52 bars.
    """
    if len(bars) < 52:
        return None

    idx = len(bars) - 1
    tenkan = _midpoint(bars, 9, idx)
    kijun = _midpoint(bars, 26, idx)

    span_a: Optional[float] = None
    span_b: Optional[float] = None
    past_idx = idx - 26
    if past_idx >= 0:
        past_tenkan = _midpoint(bars, 9, past_idx)
        past_kijun = _midpoint(bars, 26, past_idx)
        span_a = (past_tenkan + past_kijun) / 2
        span_b = _midpoint(bars, 52, past_idx)

    return IchimokuCloud(tenkan=tenkan, kijun=kijun, span_a=span_a, span_b=span_b)


# ── Volume / price action ────────────────────────────────────────────────


def analyze_volume(bars: Sequence[Bar], spike_ratio: float = 2.0) -> VolumeAnalysis:
    """Latest volume relative to the mean of all prior volumes.

    A spike is a ratio above *spike_ratio*.  Without prior volume the
    ratio is reported as 0.
    """
    if len(bars) < 2:
        return VolumeAnalysis(is_spike=False, ratio=0.0)

    prior = [b.volume for b in bars[:-1]]
    avg_volume = sum(prior) / len(prior)
    if avg_volume <= 0:
        return VolumeAnalysis(is_spike=False, ratio=0.0)

    ratio = bars[-1].volume / avg_volume
    return VolumeAnalysis(is_spike=ratio > spike_ratio, ratio=ratio)


def detect_patterns(bars: Sequence[Bar]) -> tuple[str, ...]:
    """Classify the latest bar (and its predecessor) into candle patterns.

    * Hammer/Pinbar — lower shadow > 2 × body, upper shadow < 0.5 × body.
    * Shooting Star — upper shadow > 2 × body, lower shadow < 0.5 × body.
    * Bullish / Bearish Engulfing — the current body strictly engulfs an
      opposite-coloured previous body.
    """
    if not bars:
        return ()

    current = bars[-1]
    patterns: list[str] = []

    body = abs(current.close - current.open)
    upper_shadow = current.high - max(current.open, current.close)
    lower_shadow = min(current.open, current.close) - current.low

    if lower_shadow > body * 2 and upper_shadow < body * 0.5:
        patterns.append(HAMMER)
    if upper_shadow > body * 2 and lower_shadow < body * 0.5:
        patterns.append(SHOOTING_STAR)

    if len(bars) >= 2:
        prev = bars[-2]
        if (
            current.close > current.open
            and prev.close < prev.open
            and current.close > prev.open
            and current.open < prev.close
        ):
            patterns.append(BULLISH_ENGULFING)
        if (
            current.close < current.open
            and prev.close > prev.open
            and current.close < prev.open
            and current.open > prev.close
        ):
            patterns.append(BEARISH_ENGULFING)

    return tuple(patterns)
