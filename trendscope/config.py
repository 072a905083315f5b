"""TrendScope — application configuration.

Loads .env variables into a typed config object.
Every variable is optional; malformed numbers are rejected on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    binance_base_url: str
    primary_interval: str  # e.g. "1h" or "15m"
    trend_interval: str  # e.g. "4h" or "1h"
    history_limit: int
    live_min_score: float
    backtest_min_score: float
    warmup_bars: int
    initial_balance: float
    optimizer_workers: int
    log_level: str

    @property
    def primary_label(self) -> str:
        """Timeframe label used in signal reasons (``"15m"`` or ``"1H"``)."""
        return "15m" if self.primary_interval == "15m" else "1H"


def _read(name: str, default: str, cast):
    raw = os.environ.get(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(
            f"Invalid value for environment variable {name}: {raw!r}"
        ) from None


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` naming the variable when a numeric value cannot
    be parsed or is out of range.
    """
    load_dotenv(dotenv_path=env_path)

    config = Config(
        binance_base_url=os.environ.get("BINANCE_BASE_URL", "https://api.binance.com"),
        primary_interval=os.environ.get("PRIMARY_INTERVAL", "1h"),
        trend_interval=os.environ.get("TREND_INTERVAL", "4h"),
        history_limit=_read("HISTORY_LIMIT", "1000", int),
        live_min_score=_read("LIVE_MIN_SCORE", "4", float),
        backtest_min_score=_read("BACKTEST_MIN_SCORE", "3", float),
        warmup_bars=_read("WARMUP_BARS", "200", int),
        initial_balance=_read("INITIAL_BALANCE", "10000", float),
        optimizer_workers=_read("OPTIMIZER_WORKERS", "1", int),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )

    if config.initial_balance <= 0:
        raise ValueError(
            f"INITIAL_BALANCE must be positive, got {config.initial_balance}"
        )
    if config.optimizer_workers < 1:
        raise ValueError(
            f"OPTIMIZER_WORKERS must be at least 1, got {config.optimizer_workers}"
        )
    return config
