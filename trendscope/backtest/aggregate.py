"""Bar aggregation — synthesise a higher timeframe from a finer series.

Used by the backtest when no genuine higher-timeframe history is
available.  Blocks are aligned on the UTC hour of day: a bar whose hour
is divisible by *hours* opens a new block (00:00, 04:00, 08:00, … for
4-hour blocks).
"""

from datetime import datetime, timezone
from typing import Sequence

from trendscope.strategy.models import Bar


def _opens_block(bar: Bar, hours: int) -> bool:
    hour = datetime.fromtimestamp(bar.time, tz=timezone.utc).hour
    return hour % hours == 0


def aggregate_with_close_times(
    bars: Sequence[Bar],
    hours: int = 4,
) -> tuple[list[Bar], list[float]]:
    """Aggregate *bars* into *hours*-hour blocks.

    Returns ``(blocks, close_times)`` where ``close_times[i]`` is the
    ``time`` of the last finer bar folded into ``blocks[i]``.  A block is
    fully known once a decision bar at or after that time has closed.
    """
    if hours < 1:
        raise ValueError(f"hours must be at least 1, got {hours}")

    blocks: list[Bar] = []
    close_times: list[float] = []

    current = None  # [time, open, high, low, close, volume]
    last_time = 0.0
    for bar in bars:
        if current is None or _opens_block(bar, hours):
            if current is not None:
                blocks.append(Bar(*current))
                close_times.append(last_time)
            current = [bar.time, bar.open, bar.high, bar.low, bar.close, bar.volume]
        else:
            current[2] = max(current[2], bar.high)
            current[3] = min(current[3], bar.low)
            current[4] = bar.close
            current[5] += bar.volume
        last_time = bar.time

    if current is not None:
        blocks.append(Bar(*current))
        close_times.append(last_time)

    return blocks, close_times


def aggregate_bars(bars: Sequence[Bar], hours: int = 4) -> list[Bar]:
    """Collapse *bars* into *hours*-hour bars (see module docstring)."""
    blocks, _ = aggregate_with_close_times(bars, hours)
    return blocks
