"""Drawdown tracking — pure math, no I/O.

Tracks peak balance, the current drawdown percentage and the worst
drawdown seen so far.
"""


class DrawdownTracker:
    """Tracks balance peaks and computes drawdown metrics.

    Args:
        initial_balance: Starting account balance.
    """

    def __init__(self, initial_balance: float) -> None:
        if initial_balance <= 0:
            raise ValueError(
                f"initial_balance must be positive, got {initial_balance}"
            )
        self._peak_balance: float = initial_balance
        self._current_balance: float = initial_balance
        self._max_drawdown_pct: float = 0.0

    # ── Mutation ─────────────────────────────────────────────────────────

    def update(self, balance: float) -> None:
        """Update with the latest balance.

        If *balance* exceeds the current peak, the peak is raised;
        otherwise the worst drawdown is widened if needed.
        """
        self._current_balance = balance
        if balance > self._peak_balance:
            self._peak_balance = balance
        current = self.drawdown_pct
        if current > self._max_drawdown_pct:
            self._max_drawdown_pct = current

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def peak_balance(self) -> float:
        """Highest balance recorded."""
        return self._peak_balance

    @property
    def current_balance(self) -> float:
        return self._current_balance

    @property
    def drawdown_pct(self) -> float:
        """Current drawdown as a percentage of peak balance."""
        return (
            (self._peak_balance - self._current_balance) / self._peak_balance
        ) * 100.0

    @property
    def max_drawdown_pct(self) -> float:
        """Largest drawdown percentage observed across all updates."""
        return self._max_drawdown_pct
