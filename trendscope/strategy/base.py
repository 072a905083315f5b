"""Regime strategy protocol and shared context/result types.

Defines the interface both regime strategies implement so the signal
engine can dispatch on the detected regime without knowing which rules
were applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from trendscope.strategy.models import (
    BollingerBands,
    HigherTrend,
    MACDResult,
    SignalType,
    StrategyParams,
    Trend,
    VolumeAnalysis,
)


@dataclass(frozen=True)
class RegimeContext:
    """Everything a regime strategy may read for one evaluation."""

    current_price: float
    bb: BollingerBands
    rsi: float
    macd: MACDResult
    adx: float
    atr: float
    trend_primary: Trend
    trend_higher: HigherTrend
    volume_spike: bool
    patterns: tuple[str, ...]
    sentiment: float
    params: StrategyParams
    timeframe_label: str = "1H"
    higher_timeframe_label: str = "4H"


@dataclass(frozen=True)
class RegimeResult:
    """Score and fired rules from a regime strategy.

    ``tp`` / ``sl`` are set only when the strategy picks its own exit
    levels (mean reversion); otherwise the engine derives them from ATR.
    """

    score: float
    reasons: tuple[str, ...]
    type: SignalType
    tp: Optional[float] = None
    sl: Optional[float] = None


class RegimeStrategy(Protocol):
    """Interface that both regime scoring functions satisfy."""

    def __call__(self, ctx: RegimeContext) -> RegimeResult:
        ...
