"""TrendScope — command-line entry point.

Fetches market data from Binance and runs one of four modes:

* ``signal``   — evaluate the latest bars for one symbol.
* ``scan``     — evaluate every supported symbol and pick the live trades.
* ``backtest`` — replay the fetched history for one symbol.
* ``optimize`` — grid-search the strategy parameters across a basket.

Results are printed as JSON; ``--output`` writes them to a file so the
caller can persist the best parameters between runs.
"""

import argparse
import asyncio
import json
import logging
import pathlib
from dataclasses import asdict
from typing import Optional

from trendscope.backtest.engine import BacktestEngine
from trendscope.backtest.optimizer import optimize
from trendscope.backtest.stats import summarize_trades
from trendscope.config import Config, load_config
from trendscope.feeds.binance_client import BinanceClient
from trendscope.feeds.universe import SUPPORTED_INSTRUMENTS, Instrument, find_instrument
from trendscope.strategy.models import DEFAULT_PARAMS, StrategyParams
from trendscope.strategy.scanner import ScanResult, rank_scan_results, select_actionable
from trendscope.strategy.signals import evaluate_signal

logger = logging.getLogger("trendscope")


def load_params(path: Optional[str]) -> StrategyParams:
    """Read a saved parameter set, or return the defaults when *path* is None."""
    if path is None:
        return DEFAULT_PARAMS
    with open(path, "r", encoding="utf-8") as f:
        return StrategyParams.from_dict(json.load(f))


async def _evaluate_instrument(config: Config, client: BinanceClient,
                               instrument: Instrument,
                               params: StrategyParams) -> ScanResult:
    price, primary, trend = await asyncio.gather(
        client.fetch_price(instrument.symbol),
        client.fetch_bars(instrument.symbol, config.primary_interval, 200),
        client.fetch_bars(instrument.symbol, config.trend_interval, 200),
    )
    signal = evaluate_signal(
        price, primary, trend, params,
        primary_label=config.primary_label,
        symbol=instrument.symbol,
        coin_name=instrument.name,
    )
    return ScanResult(instrument=instrument, price=price, signal=signal)


def _scan_entry(result: ScanResult) -> dict:
    return {"symbol": result.instrument.symbol, "price": result.price,
            **asdict(result.signal)}


async def _run_signal(config: Config, client: BinanceClient, symbol: str,
                      params: StrategyParams) -> dict:
    result = await _evaluate_instrument(config, client, find_instrument(symbol), params)
    logger.info("%s: %s", symbol, result.signal.reason)
    entry = _scan_entry(result)
    entry["actionable"] = bool(
        select_actionable([result], min_score=config.live_min_score)
    )
    return entry


async def _run_scan(config: Config, client: BinanceClient,
                    params: StrategyParams) -> dict:
    """Evaluate every supported instrument and select the live entries.

    An instrument whose data cannot be fetched is logged and left out of
    the scan.
    """

    async def _scan(inst: Instrument) -> Optional[ScanResult]:
        try:
            return await _evaluate_instrument(config, client, inst, params)
        except Exception as exc:
            logger.warning("Scanning %s failed: %s", inst.symbol, exc)
            return None

    scanned = await asyncio.gather(*(_scan(inst) for inst in SUPPORTED_INSTRUMENTS))
    results = rank_scan_results(r for r in scanned if r is not None)
    actionable = select_actionable(results, min_score=config.live_min_score)
    logger.info(
        "Scan complete: %d/%d instruments, %d actionable (min score %.1f)",
        len(results), len(SUPPORTED_INSTRUMENTS), len(actionable), config.live_min_score,
    )
    return {
        "min_score": config.live_min_score,
        "actionable": [_scan_entry(r) for r in actionable],
        "results": [_scan_entry(r) for r in results],
    }


async def _run_backtest(config: Config, client: BinanceClient, symbol: str,
                        params: StrategyParams) -> dict:
    bars = await client.fetch_bars(symbol, "1h", config.history_limit)
    engine = BacktestEngine(
        min_entry_score=config.backtest_min_score,
        warmup_bars=config.warmup_bars,
        initial_balance=config.initial_balance,
    )
    report = engine.run(bars, params, symbol)
    logger.info(
        "Backtest complete: %d trades, PnL: %.2f%%, Win rate: %.1f%%, MaxDD: %.2f%%",
        report.trades_count, report.total_pnl, report.win_rate, report.max_drawdown,
    )
    result = asdict(report)
    result["summary"] = summarize_trades([t.pnl for t in report.trades])
    return result


async def _run_optimize(config: Config, client: BinanceClient) -> dict:
    engine = BacktestEngine(
        min_entry_score=config.backtest_min_score,
        warmup_bars=config.warmup_bars,
        initial_balance=config.initial_balance,
    )
    best = await optimize(
        SUPPORTED_INSTRUMENTS,
        client,
        engine=engine,
        limit=config.history_limit,
        workers=config.optimizer_workers,
    )
    return best.to_dict()


def _run_cli(argv: Optional[list[str]] = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    parser = argparse.ArgumentParser(description="TrendScope signal engine")
    parser.add_argument(
        "--mode",
        choices=["signal", "scan", "backtest", "optimize"],
        default="signal",
        help="What to run (default: signal)",
    )
    parser.add_argument("--symbol", default="BTCUSDT", help="Symbol for signal/backtest")
    parser.add_argument("--params", help="JSON file with strategy parameters")
    parser.add_argument("--output", help="Write the JSON result to this file")
    args = parser.parse_args(argv)

    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    client = BinanceClient(config)
    params = load_params(args.params)

    if args.mode == "signal":
        result = asyncio.run(_run_signal(config, client, args.symbol, params))
    elif args.mode == "scan":
        result = asyncio.run(_run_scan(config, client, params))
    elif args.mode == "backtest":
        result = asyncio.run(_run_backtest(config, client, args.symbol, params))
    else:
        result = asyncio.run(_run_optimize(config, client))

    text = json.dumps(result, indent=2, default=str)
    if args.output:
        pathlib.Path(args.output).write_text(text, encoding="utf-8")
        logger.info("Result written to %s", args.output)
    print(text)


if __name__ == "__main__":
    _run_cli()
