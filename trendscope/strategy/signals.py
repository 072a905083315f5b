"""Signal evaluation — pure functions, no I/O.

Given the current price, primary-timeframe bars and (optionally)
higher-timeframe bars, computes the indicator snapshot, classifies the
market regime and produces a LONG / SHORT / NEUTRAL signal with entry,
stop-loss, a three-stage take-profit ladder and leverage.

Regime is decided by the ADX proxy:

* **TRENDING** (ADX > threshold) → multi-factor trend-following score.
* **RANGING** (ADX <= threshold) → Bollinger/RSI mean reversion.

The same function drives live evaluation, the market scanner and the
backtest simulator; it holds no state between calls.
"""

import logging
from typing import Optional, Sequence

from trendscope.risk.sl_tp import (
    NEUTRAL_LEVERAGE,
    calculate_leverage,
    calculate_trend_levels,
    flat_levels,
)
from trendscope.strategy.base import RegimeContext, RegimeResult
from trendscope.strategy.indicators import (
    analyze_volume,
    calculate_adx_proxy,
    calculate_atr,
    calculate_bollinger,
    calculate_macd,
    calculate_pivot_points,
    calculate_rsi,
    detect_patterns,
)
from trendscope.strategy.models import (
    DEFAULT_PARAMS,
    Bar,
    ExternalSentiment,
    IndicatorSnapshot,
    NewsItem,
    Signal,
    StrategyParams,
)
from trendscope.strategy.registry import classify_regime, get_regime_strategy
from trendscope.strategy.sentiment import resolve_sentiment
from trendscope.strategy.trend import detect_higher_trend, primary_trend

logger = logging.getLogger("trendscope")


def higher_timeframe_label(primary_label: str) -> str:
    """Label of the confirmation timeframe: 15m scalps confirm on 1H, else 4H."""
    return "1H" if primary_label == "15m" else "4H"


def evaluate_signal(
    current_price: float,
    primary_bars: Sequence[Bar],
    trend_bars: Sequence[Bar] = (),
    params: StrategyParams = DEFAULT_PARAMS,
    news: Sequence[NewsItem] = (),
    external_sentiment: Optional[ExternalSentiment] = None,
    primary_label: str = "1H",
    symbol: str = "",
    coin_name: str = "",
) -> Signal:
    """Evaluate the latest primary bar and return a trading signal.

    Args:
        current_price: Latest traded price (entry for an active signal).
        primary_bars: Primary-timeframe bars, oldest-first, non-empty.
        trend_bars: Higher-timeframe bars, oldest-first.  May be empty,
            in which case the higher trend is NEUTRAL.
        params: Strategy parameters.
        news: Headlines for keyword sentiment.
        external_sentiment: AI-scored sentiment; overrides *news* when set.
        primary_label: Primary timeframe label (``"1H"`` or ``"15m"``),
            used in the reason text.
        symbol: Traded symbol, e.g. ``"BTCUSDT"``, for news weighting.
        coin_name: Coin name, e.g. ``"Bitcoin"``, for news weighting.

    Returns:
        ``Signal`` with the full ``IndicatorSnapshot`` attached.

    Raises:
        ValueError: If *primary_bars* is empty.
    """
    if not primary_bars:
        raise ValueError("primary_bars must contain at least one bar")

    # ── 1. Primary timeframe indicators ──────────────────────────────
    closes = [b.close for b in primary_bars]
    rsi = calculate_rsi(closes)
    macd = calculate_macd(closes)
    bb = calculate_bollinger(closes)
    trend, ema50 = primary_trend(current_price, closes)

    # ── 2. Volatility, trend strength, levels, price action ──────────
    atr = calculate_atr(primary_bars)
    adx = calculate_adx_proxy(primary_bars)
    last = primary_bars[-1]
    pivots = calculate_pivot_points(last.high, last.low, last.close)
    volume = analyze_volume(primary_bars)
    patterns = detect_patterns(primary_bars)

    # ── 3. Sentiment ─────────────────────────────────────────────────
    sentiment, sentiment_note = resolve_sentiment(
        news, external_sentiment, symbol, coin_name,
    )

    # ── 4. Higher timeframe ──────────────────────────────────────────
    higher = detect_higher_trend(current_price, trend_bars)

    snapshot = IndicatorSnapshot(
        rsi=rsi,
        macd=macd,
        bb=bb,
        atr=atr,
        adx=adx,
        volume=volume,
        trend=trend,
        trend_higher=higher.direction,
        patterns=patterns,
        sentiment=sentiment,
        sentiment_note=sentiment_note,
        pivots=pivots,
        ema50=ema50,
        ema200=higher.ema200,
        ichimoku=higher.ichimoku,
    )

    # ── 5. Regime detection and scoring ──────────────────────────────
    regime = classify_regime(adx, params.adx_threshold)
    ctx = RegimeContext(
        current_price=current_price,
        bb=bb,
        rsi=rsi,
        macd=macd,
        adx=adx,
        atr=atr,
        trend_primary=trend,
        trend_higher=higher.direction,
        volume_spike=volume.is_spike,
        patterns=patterns,
        sentiment=sentiment,
        params=params,
        timeframe_label=primary_label,
        higher_timeframe_label=higher_timeframe_label(primary_label),
    )
    result = get_regime_strategy(regime)(ctx)

    if result.type != "NEUTRAL" and result.tp is None and atr <= 0:
        result = RegimeResult(
            score=0.0,
            reasons=result.reasons + ("No volatility (ATR 0)",),
            type="NEUTRAL",
        )

    logger.debug(
        "%s %s: regime=%s adx=%.1f score=%.2f type=%s",
        symbol or "?", primary_label, regime, adx, result.score, result.type,
    )

    return _build_signal(current_price, regime, result, snapshot, params)


def _build_signal(
    current_price: float,
    regime: str,
    result: RegimeResult,
    snapshot: IndicatorSnapshot,
    params: StrategyParams,
) -> Signal:
    """Attach exit levels and leverage to a regime result."""
    reasons = ", ".join(result.reasons)

    if result.type == "NEUTRAL":
        return Signal(
            type="NEUTRAL",
            entry=current_price,
            sl=0.0,
            tp=0.0,
            tp1=0.0,
            tp2=0.0,
            tp3=0.0,
            leverage=NEUTRAL_LEVERAGE,
            score=result.score,
            reason=f"[{regime}] {reasons}",
            regime=regime,
            indicators=snapshot,
        )

    leverage = calculate_leverage(result.score)
    if result.tp is not None and result.sl is not None:
        levels = flat_levels(result.tp, result.sl)
    else:
        levels = calculate_trend_levels(
            current_price, result.type, snapshot.atr, params.sl_mult,
        )

    return Signal(
        type=result.type,
        entry=current_price,
        sl=levels.sl,
        tp=levels.tp,
        tp1=levels.tp1,
        tp2=levels.tp2,
        tp3=levels.tp3,
        leverage=leverage,
        score=result.score,
        reason=f"{result.type} ({regime}) Lev x{leverage}: {reasons}",
        regime=regime,
        indicators=snapshot,
    )
