"""Regime registry — maps regime names to their scoring strategies.

Used by the signal engine to dispatch after regime classification.
"""

from trendscope.strategy.base import RegimeStrategy
from trendscope.strategy.models import Regime
from trendscope.strategy.ranging import ranging_signal
from trendscope.strategy.trending import trending_signal


REGIME_STRATEGIES: dict[str, RegimeStrategy] = {
    "TRENDING": trending_signal,
    "RANGING": ranging_signal,
}


def classify_regime(adx: float, threshold: float = 25.0) -> Regime:
    """TRENDING when the ADX proxy is strictly above *threshold*, else RANGING."""
    return "TRENDING" if adx > threshold else "RANGING"


def get_regime_strategy(regime: str) -> RegimeStrategy:
    """Look up the scoring strategy for *regime*.

    Raises ``KeyError`` if the regime name is not registered.
    """
    if regime not in REGIME_STRATEGIES:
        raise KeyError(
            f"Unknown regime '{regime}'. "
            f"Available: {', '.join(REGIME_STRATEGIES.keys())}"
        )
    return REGIME_STRATEGIES[regime]
