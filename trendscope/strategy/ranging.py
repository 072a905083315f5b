"""Mean-reversion scoring — applied when the ADX proxy is at or below threshold.

Buys the lower Bollinger band on oversold RSI and sells the upper band on
overbought RSI, targeting the middle band.  Strong higher-timeframe
trends veto the counter-trend side.
"""

from trendscope.strategy.base import RegimeContext, RegimeResult

OVERSOLD = 30.0
OVERBOUGHT = 70.0
MR_SCORE = 3.0
MR_SL_ATR_MULT = 1.5


def ranging_signal(ctx: RegimeContext) -> RegimeResult:
    """Evaluate a mean-reversion setup at the Bollinger band edges.

    A setup needs room to revert: the middle band must lie strictly on
    the profit side of the entry and ATR must be positive.  Zero-width
    bands (a flat market) therefore never trade.
    """
    price = ctx.current_price
    bb = ctx.bb
    sl_dist = ctx.atr * MR_SL_ATR_MULT

    if price <= bb.lower and ctx.rsi < OVERSOLD:
        if ctx.trend_higher == "STRONG_DOWN":
            return _neutral("Blocked: Strong Downtrend")
        if bb.middle <= price or sl_dist <= 0:
            return _neutral("Mean Reversion skipped: no room to revert")
        return RegimeResult(
            score=MR_SCORE,
            reasons=(f"Mean Reversion: Lower BB Bounce (RSI {ctx.rsi:.1f})",),
            type="LONG",
            tp=bb.middle,
            sl=price - sl_dist,
        )

    if price >= bb.upper and ctx.rsi > OVERBOUGHT:
        if ctx.trend_higher == "STRONG_UP":
            return _neutral("Blocked: Strong Uptrend")
        if bb.middle >= price or sl_dist <= 0:
            return _neutral("Mean Reversion skipped: no room to revert")
        return RegimeResult(
            score=-MR_SCORE,
            reasons=(f"Mean Reversion: Upper BB Bounce (RSI {ctx.rsi:.1f})",),
            type="SHORT",
            tp=bb.middle,
            sl=price + sl_dist,
        )

    return _neutral(f"Sideway (ADX {ctx.adx:.1f}). Waiting for Setup.")


def _neutral(reason: str) -> RegimeResult:
    return RegimeResult(score=0.0, reasons=(reason,), type="NEUTRAL")
