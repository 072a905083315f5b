"""Bar feed protocol — the market-data collaborator the core consumes.

Any object with a matching ``fetch_bars`` coroutine can back the
optimizer and the CLI (the Binance client, a CSV replayer, a test stub).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from trendscope.strategy.models import Bar


@runtime_checkable
class BarFeed(Protocol):
    """Interface that all market-data feeds must satisfy."""

    async def fetch_bars(self, symbol: str, interval: str, limit: int) -> list[Bar]:
        """Return up to *limit* bars for *symbol*, oldest-first."""
        ...
