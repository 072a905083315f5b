"""Trend-following scoring — applied when the ADX proxy is above threshold.

Adds and subtracts points for multi-timeframe alignment, Bollinger
breakouts, RSI, MACD, volume, candle patterns and sentiment, then blocks
any score that fights a strong higher-timeframe trend.
"""

from trendscope.strategy.base import RegimeContext, RegimeResult
from trendscope.strategy.indicators import BEARISH_PATTERNS, BULLISH_PATTERNS

# |score| needed for a directional signal.
SIGNAL_THRESHOLD = 3.0


def trending_signal(ctx: RegimeContext) -> RegimeResult:
    """Score a trending market.  Positive scores are bullish."""
    score = 0.0
    reasons: list[str] = []
    primary = ctx.timeframe_label
    higher = ctx.higher_timeframe_label

    # 1. Multi-timeframe alignment
    if "UP" in ctx.trend_higher:
        if ctx.trend_primary == "UP":
            score += 2
            reasons.append(f"MTF Alignment ({higher}+{primary} Bull)")
        else:
            score -= 1
            reasons.append(f"Trend Conflict ({higher} Up, {primary} Down)")
    elif "DOWN" in ctx.trend_higher:
        if ctx.trend_primary == "DOWN":
            score -= 2
            reasons.append(f"MTF Alignment ({higher}+{primary} Bear)")
        else:
            score += 1
            reasons.append(f"Trend Conflict ({higher} Down, {primary} Up)")

    # 2. Momentum breakout
    if ctx.current_price > ctx.bb.upper and ctx.trend_primary == "UP":
        score += 2
        reasons.append("Momentum Breakout (Price > Upper BB)")
    if ctx.current_price < ctx.bb.lower and ctx.trend_primary == "DOWN":
        score -= 2
        reasons.append("Momentum Breakout (Price < Lower BB)")

    # 3. RSI — overbought is tolerated inside a strong uptrend
    rsi_lower = ctx.params.rsi_lower
    rsi_upper = ctx.params.rsi_upper
    if ctx.rsi < rsi_lower:
        score += 1
        reasons.append(f"RSI Oversold (<{rsi_lower:g})")
    if ctx.rsi > rsi_upper:
        if ctx.trend_higher == "STRONG_UP":
            score += 0.5
            reasons.append("RSI High (Strong Trend)")
        else:
            score -= 1
            reasons.append(f"RSI Overbought (>{rsi_upper:g})")

    # 4. MACD
    macd = ctx.macd
    if macd.histogram > 0 and macd.macd > macd.signal:
        score += 1
        reasons.append("MACD Bull")
    if macd.histogram < 0 and macd.macd < macd.signal:
        score -= 1
        reasons.append("MACD Bear")

    # 5. Volume amplifies whichever side is already winning
    if ctx.volume_spike:
        if score > 0:
            score += 1
            reasons.append("Vol Spike")
        elif score < 0:
            score -= 1
            reasons.append("Vol Spike")

    # 6. Price action
    patterns = set(ctx.patterns)
    if patterns & BULLISH_PATTERNS:
        score += 1.5
        reasons.append(f"Pattern: {', '.join(ctx.patterns)}")
    if patterns & BEARISH_PATTERNS:
        score -= 1.5
        reasons.append(f"Pattern: {', '.join(ctx.patterns)}")

    # 7. Sentiment
    if ctx.sentiment != 0:
        score += ctx.sentiment * 0.5
        reasons.append(f"Sentiment ({ctx.sentiment:+.1f})")

    # 8. Trend guard
    if ctx.trend_higher == "STRONG_UP" and score < 0:
        score = 0.0
        reasons.append("Trend Guard: Blocked Short (Strong Uptrend)")
    if ctx.trend_higher == "STRONG_DOWN" and score > 0:
        score = 0.0
        reasons.append("Trend Guard: Blocked Long (Strong Downtrend)")

    if score >= SIGNAL_THRESHOLD:
        signal_type = "LONG"
    elif score <= -SIGNAL_THRESHOLD:
        signal_type = "SHORT"
    else:
        signal_type = "NEUTRAL"

    return RegimeResult(score=score, reasons=tuple(reasons), type=signal_type)
