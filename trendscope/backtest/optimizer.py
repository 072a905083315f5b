"""Parameter optimizer — grid search over strategy parameters.

Backtests every combination of a fixed parameter grid across a basket of
instruments and ranks the combinations by a drawdown-penalised return:

    score = avg_pnl − 2 × avg_max_drawdown

Historical bars are fetched once per instrument (concurrently) and shared
read-only by every grid point.  Grid points are independent and may run
in a process pool.
"""

import asyncio
import itertools
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

from trendscope.backtest.engine import BacktestEngine
from trendscope.feeds.base import BarFeed
from trendscope.feeds.universe import Instrument
from trendscope.strategy.models import Bar, StrategyParams

logger = logging.getLogger("trendscope")

PARAM_GRID_VALUES: dict[str, tuple[float, ...]] = {
    "adx_threshold": (20.0, 25.0, 30.0),
    "rsi_lower": (25.0, 30.0, 35.0),
    "rsi_upper": (65.0, 70.0, 75.0),
    "tp_mult": (1.5, 2.0, 2.5, 3.0),
    "sl_mult": (1.0, 1.5, 2.0),
}

PREFERRED_BASKET = ("BTCUSDT", "ETHUSDT", "SOLUSDT", "BNBUSDT", "XRPUSDT")
FALLBACK_BASKET_SIZE = 3
DRAWDOWN_PENALTY = 2.0

MarketData = Mapping[str, Sequence[Bar]]


class OptimizationCancelled(Exception):
    """Raised when a run is cancelled before any grid point completed."""


@dataclass(frozen=True)
class OptimizationMetrics:
    """Basket-averaged backtest metrics for one grid point."""

    pnl: float
    win_rate: float
    max_dd: float


@dataclass(frozen=True)
class OptimizationResult:
    params: StrategyParams
    score: float
    metrics: OptimizationMetrics


# ── Grid / basket ────────────────────────────────────────────────────────


def build_param_grid(
    values: Mapping[str, Sequence[float]] = PARAM_GRID_VALUES,
) -> list[StrategyParams]:
    """Cartesian product of *values*, in key order (last key varies fastest)."""
    keys = list(values.keys())
    return [
        StrategyParams(**dict(zip(keys, combo)))
        for combo in itertools.product(*(values[k] for k in keys))
    ]


def select_basket(
    universe: Sequence[Instrument],
    preferred: Sequence[str] = PREFERRED_BASKET,
    fallback_count: int = FALLBACK_BASKET_SIZE,
) -> list[Instrument]:
    """Instruments of *universe* whose symbol is in *preferred*.

    Falls back to the first *fallback_count* instruments when none match.
    """
    wanted = set(preferred)
    basket = [inst for inst in universe if inst.symbol in wanted]
    if not basket:
        logger.warning(
            "Preferred instruments not found, using the first %d available",
            fallback_count,
        )
        basket = list(universe[:fallback_count])
    return basket


async def fetch_market_data(
    feed: BarFeed,
    basket: Sequence[Instrument],
    interval: str = "1h",
    limit: int = 1000,
) -> dict[str, list[Bar]]:
    """Fetch one bar series per instrument, concurrently.

    A failed fetch is logged and leaves an empty series for that
    instrument.
    """

    async def _fetch(inst: Instrument) -> list[Bar]:
        try:
            bars = await feed.fetch_bars(inst.symbol, interval, limit)
        except Exception as exc:
            logger.warning("Fetching %s failed: %s", inst.symbol, exc)
            return []
        logger.info("Fetched %d bars for %s", len(bars), inst.symbol)
        return bars

    series = await asyncio.gather(*(_fetch(inst) for inst in basket))
    return {inst.symbol: bars for inst, bars in zip(basket, series)}


# ── Evaluation ───────────────────────────────────────────────────────────


def evaluate_params(
    params: StrategyParams,
    market_data: MarketData,
    engine: BacktestEngine,
) -> OptimizationResult:
    """Backtest *params* on every instrument and average the metrics.

    Instruments without data count as zero return and zero drawdown.
    """
    total_pnl = 0.0
    total_win_rate = 0.0
    total_max_dd = 0.0

    for symbol, bars in market_data.items():
        if not bars:
            continue
        report = engine.run(bars, params, symbol)
        total_pnl += report.total_pnl
        total_win_rate += report.win_rate
        total_max_dd += report.max_drawdown

    count = max(1, len(market_data))
    metrics = OptimizationMetrics(
        pnl=total_pnl / count,
        win_rate=total_win_rate / count,
        max_dd=total_max_dd / count,
    )
    score = metrics.pnl - DRAWDOWN_PENALTY * metrics.max_dd
    return OptimizationResult(params=params, score=score, metrics=metrics)


# Per-process state for pool workers, set once by ``_init_worker``.
_worker_market_data: MarketData = {}
_worker_engine: Optional[BacktestEngine] = None


def _init_worker(market_data: MarketData, engine: BacktestEngine) -> None:
    global _worker_market_data, _worker_engine
    _worker_market_data = market_data
    _worker_engine = engine


def _evaluate_in_worker(index: int, params: StrategyParams) -> tuple[int, OptimizationResult]:
    return index, evaluate_params(params, _worker_market_data, _worker_engine)


def rank_results(indexed: Sequence[tuple[int, OptimizationResult]]) -> list[OptimizationResult]:
    """Sort by score descending; equal scores keep grid enumeration order."""
    in_grid_order = [r for _, r in sorted(indexed, key=lambda item: item[0])]
    return sorted(in_grid_order, key=lambda r: r.score, reverse=True)


def grid_search(
    market_data: MarketData,
    grid: Sequence[StrategyParams],
    engine: Optional[BacktestEngine] = None,
    workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> list[OptimizationResult]:
    """Evaluate every grid point and return the ranked results.

    Setting *cancel_event* stops the search at grid-point granularity:
    points already running finish, the rest are discarded, and the ranked
    partial results are returned.

    Raises ``OptimizationCancelled`` if nothing was evaluated.
    """
    engine = engine or BacktestEngine()
    total = len(grid)
    indexed: list[tuple[int, OptimizationResult]] = []

    def _record(item: tuple[int, OptimizationResult]) -> None:
        indexed.append(item)
        done = len(indexed)
        if progress_callback:
            progress_callback(done, total)
        if done % 50 == 0:
            logger.info("Processed %d/%d grid points", done, total)

    def _cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    if workers <= 1:
        for index, params in enumerate(grid):
            if _cancelled():
                break
            _record((index, evaluate_params(params, market_data, engine)))
    else:
        with ProcessPoolExecutor(
            max_workers=workers,
            initializer=_init_worker,
            initargs=(dict(market_data), engine),
        ) as pool:
            pending = {
                pool.submit(_evaluate_in_worker, index, params)
                for index, params in enumerate(grid)
            }
            while pending:
                done, pending = wait(pending, timeout=0.5, return_when=FIRST_COMPLETED)
                for future in done:
                    if not future.cancelled():
                        _record(future.result())
                if _cancelled():
                    for future in pending:
                        future.cancel()
                    for future in wait(pending).done:
                        if not future.cancelled():
                            _record(future.result())
                    break

    if _cancelled():
        logger.info("Optimization cancelled after %d/%d grid points", len(indexed), total)
    if not indexed:
        raise OptimizationCancelled("no grid point was evaluated")

    return rank_results(indexed)


async def optimize(
    universe: Sequence[Instrument],
    feed: BarFeed,
    engine: Optional[BacktestEngine] = None,
    grid: Optional[Sequence[StrategyParams]] = None,
    interval: str = "1h",
    limit: int = 1000,
    workers: int = 1,
    cancel_event: Optional[threading.Event] = None,
) -> StrategyParams:
    """Find the best-scoring parameter set for a basket drawn from *universe*.

    The grid search runs in a worker thread so the event loop stays free;
    set *cancel_event* to stop it early. Cancelling the awaiting task also
    stops the search at the next grid point.
    """
    if cancel_event is None:
        cancel_event = threading.Event()
    grid = list(grid) if grid is not None else build_param_grid()
    basket = select_basket(universe)
    logger.info(
        "Starting optimization: %d combinations across %s",
        len(grid), ", ".join(inst.symbol for inst in basket),
    )

    market_data = await fetch_market_data(feed, basket, interval, limit)
    try:
        results = await asyncio.to_thread(
            grid_search, market_data, grid, engine, workers, cancel_event,
        )
    except asyncio.CancelledError:
        cancel_event.set()
        logger.info("Optimization task cancelled; stopping grid search")
        raise

    for rank, res in enumerate(results[:3], start=1):
        logger.info(
            "#%d: score %.2f | PnL %.1f%% | WR %.1f%% | MaxDD %.1f%% | %s",
            rank, res.score, res.metrics.pnl, res.metrics.win_rate,
            res.metrics.max_dd, res.params.to_dict(),
        )

    best = results[0]
    logger.info("Optimization complete. Winner: %s", best.params.to_dict())
    return best.params
