"""Leverage and stop-loss / take-profit calculation — pure math, no I/O.

Trend-following approach:
    SL distance = ATR × sl_mult.  TP1/TP2/TP3 sit at 1×, 2× and 3× that
    distance in the profit direction; TP2 is the canonical target.

Mean-reversion approach:
    The regime strategy supplies a single target and stop; all three
    take-profit stages collapse onto that target.
"""

from dataclasses import dataclass

# (minimum |score|, leverage), checked top-down.
LEVERAGE_LADDER: tuple[tuple[float, int], ...] = (
    (7.0, 40),
    (5.0, 20),
    (4.0, 10),
)
BASE_LEVERAGE = 5
NEUTRAL_LEVERAGE = 1


@dataclass(frozen=True)
class RiskLevels:
    """Computed stop-loss and take-profit ladder for a trade."""

    sl: float
    tp: float
    tp1: float
    tp2: float
    tp3: float


def calculate_leverage(score: float) -> int:
    """Map a signal score to a leverage step.

    |score| ≥ 7 → 40, ≥ 5 → 20, ≥ 4 → 10, anything else → 5.
    """
    strength = abs(score)
    for threshold, leverage in LEVERAGE_LADDER:
        if strength >= threshold:
            return leverage
    return BASE_LEVERAGE


def calculate_trend_levels(
    entry_price: float,
    direction: str,
    atr: float,
    sl_mult: float,
) -> RiskLevels:
    """ATR-based ladder for a trend-following trade.

    Args:
        entry_price: Trade entry price.
        direction: ``"LONG"`` or ``"SHORT"``.
        atr: Current ATR of the primary timeframe.
        sl_mult: Stop distance as a multiple of ATR.

    Raises ``ValueError`` for an unknown direction.
    """
    if direction == "LONG":
        sign = 1.0
    elif direction == "SHORT":
        sign = -1.0
    else:
        raise ValueError(f"direction must be 'LONG' or 'SHORT', got {direction!r}")

    sl_dist = atr * sl_mult
    tp2 = entry_price + sign * sl_dist * 2.0
    return RiskLevels(
        sl=entry_price - sign * sl_dist,
        tp=tp2,
        tp1=entry_price + sign * sl_dist,
        tp2=tp2,
        tp3=entry_price + sign * sl_dist * 3.0,
    )


def flat_levels(tp: float, sl: float) -> RiskLevels:
    """Single-target ladder: every TP stage equals *tp*."""
    return RiskLevels(sl=sl, tp=tp, tp1=tp, tp2=tp, tp3=tp)
