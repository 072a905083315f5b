"""Market scan ranking — orders per-instrument signals and picks trades.

The scan loop itself (fetching prices and bars on a timer) belongs to the
caller; these helpers only rank and filter the evaluated results.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

from trendscope.feeds.universe import Instrument
from trendscope.strategy.models import Signal

# Live entries require a stronger score than the backtest default.
LIVE_MIN_SCORE = 4.0
MAX_TRADES_PER_SCAN = 3


@dataclass(frozen=True)
class ScanResult:
    """One instrument's signal from a scan pass."""

    instrument: Instrument
    price: float
    signal: Signal


def rank_scan_results(results: Iterable[ScanResult]) -> list[ScanResult]:
    """Sort results strongest-first by absolute score (stable)."""
    return sorted(results, key=lambda r: abs(r.signal.score), reverse=True)


def select_actionable(
    results: Sequence[ScanResult],
    min_score: float = LIVE_MIN_SCORE,
    max_trades: int = MAX_TRADES_PER_SCAN,
    open_symbols: Iterable[str] = (),
) -> list[ScanResult]:
    """Pick the strongest directional signals worth acting on.

    Skips NEUTRAL signals, signals below *min_score*, and instruments that
    already have an open position.  At most *max_trades* are returned.
    """
    busy = set(open_symbols)
    selected: list[ScanResult] = []
    for result in rank_scan_results(results):
        if len(selected) >= max_trades:
            break
        signal = result.signal
        if signal.type == "NEUTRAL" or abs(signal.score) < min_score:
            continue
        if result.instrument.symbol in busy:
            continue
        selected.append(result)
    return selected
