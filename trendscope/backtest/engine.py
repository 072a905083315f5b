"""Backtest engine — replays historical bars through the signal engine.

Iterates bars chronologically, feeding the signal engine only the bars
known at each step, and simulates one leveraged position at a time with a
compounding virtual balance.  No real orders are placed.
"""

import bisect
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from trendscope.backtest.aggregate import aggregate_with_close_times
from trendscope.backtest.stats import calculate_total_pnl, calculate_win_rate
from trendscope.risk.drawdown import DrawdownTracker
from trendscope.strategy.models import DEFAULT_PARAMS, Bar, SignalType, StrategyParams
from trendscope.strategy.signals import evaluate_signal

logger = logging.getLogger("trendscope")

# The live scanner uses a stricter entry score (4); see scanner.LIVE_MIN_SCORE.
BACKTEST_MIN_SCORE = 3.0
WARMUP_BARS = 200
INITIAL_BALANCE = 10_000.0
TREND_HOURS = 4


@dataclass(frozen=True)
class Position:
    """An open simulated position."""

    type: SignalType
    entry: float
    tp: float
    sl: float
    leverage: int
    open_time: float


@dataclass(frozen=True)
class ClosedTrade:
    """A realized simulated trade. ``pnl`` is a leveraged percentage."""

    type: SignalType
    entry: float
    exit_price: float
    tp: float
    sl: float
    leverage: int
    pnl: float
    exit_reason: str  # "TP" or "SL"
    open_time: float
    close_time: float


@dataclass(frozen=True)
class BacktestReport:
    """Aggregate result of one simulation run."""

    symbol: str
    trades_count: int
    win_rate: float
    total_pnl: float
    max_drawdown: float
    final_balance: float
    trades: tuple[ClosedTrade, ...] = ()


class BacktestEngine:
    """Simulates trading on historical bar data.

    Args:
        min_entry_score: Minimum |score| to open a position.
        warmup_bars: Index of the first simulated bar; earlier bars only
            provide indicator history.
        initial_balance: Starting virtual balance.
        trend_hours: Size of the synthesised higher-timeframe bars.
    """

    def __init__(
        self,
        min_entry_score: float = BACKTEST_MIN_SCORE,
        warmup_bars: int = WARMUP_BARS,
        initial_balance: float = INITIAL_BALANCE,
        trend_hours: int = TREND_HOURS,
    ) -> None:
        if initial_balance <= 0:
            raise ValueError(
                f"initial_balance must be positive, got {initial_balance}"
            )
        self.min_entry_score = min_entry_score
        self.warmup_bars = warmup_bars
        self.initial_balance = initial_balance
        self.trend_hours = trend_hours

    # ── Public API ───────────────────────────────────────────────────────

    def run(
        self,
        bars: Sequence[Bar],
        params: StrategyParams = DEFAULT_PARAMS,
        symbol: str = "",
    ) -> BacktestReport:
        """Execute a full backtest over *bars* (oldest-first).

        At each bar from the warm-up offset onward:

        1. An open position is closed when the bar's close reaches its TP
           (checked first) or SL; P&L is realized at the level price.
        2. With no position open, the signal engine sees ``bars[:i + 1]``
           plus the higher-timeframe blocks completed by this bar, and a
           position opens when the signal is directional and
           ``|score| >= min_entry_score``.

        A position still open after the last bar is not realized.

        Realized P&L is the leveraged move, except that a loss is capped at
        -100% (liquidation), so the balance never drops below zero.
        """
        trend_blocks, block_close_times = aggregate_with_close_times(
            bars, self.trend_hours,
        )

        balance = self.initial_balance
        tracker = DrawdownTracker(self.initial_balance)
        position: Optional[Position] = None
        trades: list[ClosedTrade] = []

        for i in range(self.warmup_bars, len(bars)):
            bar = bars[i]
            price = bar.close

            # 1 — Check open position for TP / SL exit
            if position is not None:
                exit_ = self._check_exit(position, price)
                if exit_ is not None:
                    exit_price, reason = exit_
                    pnl = self._calc_pnl(position, exit_price)
                    balance += balance * (pnl / 100)
                    tracker.update(balance)
                    trades.append(ClosedTrade(
                        type=position.type,
                        entry=position.entry,
                        exit_price=exit_price,
                        tp=position.tp,
                        sl=position.sl,
                        leverage=position.leverage,
                        pnl=pnl,
                        exit_reason=reason,
                        open_time=position.open_time,
                        close_time=bar.time,
                    ))
                    position = None

            if position is not None:
                continue

            # 2 — Evaluate with only the data known at this bar
            known_blocks = bisect.bisect_right(block_close_times, bar.time)
            signal = evaluate_signal(
                price,
                bars[: i + 1],
                trend_blocks[:known_blocks],
                params,
                symbol=symbol,
            )

            if signal.type != "NEUTRAL" and abs(signal.score) >= self.min_entry_score:
                position = Position(
                    type=signal.type,
                    entry=price,
                    tp=signal.tp,
                    sl=signal.sl,
                    leverage=signal.leverage,
                    open_time=bar.time,
                )

        pnls = [t.pnl for t in trades]
        report = BacktestReport(
            symbol=symbol,
            trades_count=len(trades),
            win_rate=calculate_win_rate(pnls),
            total_pnl=calculate_total_pnl(balance, self.initial_balance),
            max_drawdown=tracker.max_drawdown_pct,
            final_balance=balance,
            trades=tuple(trades),
        )
        logger.debug(
            "Backtest %s: %d trades, pnl=%.2f%%, maxDD=%.2f%%",
            symbol or "?", report.trades_count, report.total_pnl, report.max_drawdown,
        )
        return report

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _check_exit(position: Position, price: float) -> Optional[tuple[float, str]]:
        """Check whether *price* reaches the position's TP or SL.

        Returns ``(exit_price, reason)`` or ``None``.  TP wins when both
        conditions hold.
        """
        if position.type == "LONG":
            if price >= position.tp:
                return position.tp, "TP"
            if price <= position.sl:
                return position.sl, "SL"
        else:
            if price <= position.tp:
                return position.tp, "TP"
            if price >= position.sl:
                return position.sl, "SL"
        return None

    @staticmethod
    def _calc_pnl(position: Position, exit_price: float) -> float:
        """Leveraged P&L percentage, floored at -100 (liquidation)."""
        move = (exit_price - position.entry) / position.entry * 100
        if position.type == "SHORT":
            move = -move
        return max(-100.0, move * position.leverage)


def run_backtest(
    bars: Sequence[Bar],
    params: StrategyParams = DEFAULT_PARAMS,
    symbol: str = "",
    **engine_kwargs,
) -> BacktestReport:
    """Convenience wrapper: ``BacktestEngine(**engine_kwargs).run(...)``."""
    return BacktestEngine(**engine_kwargs).run(bars, params, symbol)
