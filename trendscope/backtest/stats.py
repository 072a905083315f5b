"""Backtest statistics — pure functions for trade-series analysis."""

from typing import Optional, Sequence


def calculate_win_rate(pnls: Sequence[float]) -> float:
    """Percentage of trades with a strictly positive P&L (0 with no trades)."""
    if not pnls:
        return 0.0
    wins = sum(1 for p in pnls if p > 0)
    return wins / len(pnls) * 100.0


def calculate_total_pnl(final_balance: float, initial_balance: float) -> float:
    """Return on the starting balance, in percent."""
    return (final_balance - initial_balance) / initial_balance * 100.0


def summarize_trades(pnls: Sequence[float]) -> dict:
    """Compute summary statistics from a list of per-trade P&L percentages.

    Returns:
        Dict with ``total_trades``, ``winning_trades``, ``losing_trades``,
        ``win_rate``, ``average_win``, ``average_loss``, ``largest_win``,
        ``largest_loss`` and ``profit_factor`` (``None`` without losses).
    """
    if not pnls:
        return {
            "total_trades": 0,
            "winning_trades": 0,
            "losing_trades": 0,
            "win_rate": 0.0,
            "average_win": 0.0,
            "average_loss": 0.0,
            "largest_win": 0.0,
            "largest_loss": 0.0,
            "profit_factor": None,
        }

    winners = [p for p in pnls if p > 0]
    losers = [p for p in pnls if p <= 0]

    gross_profit = sum(winners)
    gross_loss = abs(sum(losers))
    profit_factor: Optional[float] = (
        gross_profit / gross_loss if gross_loss > 0 else None
    )

    return {
        "total_trades": len(pnls),
        "winning_trades": len(winners),
        "losing_trades": len(losers),
        "win_rate": round(calculate_win_rate(pnls), 4),
        "average_win": round(gross_profit / len(winners), 4) if winners else 0.0,
        "average_loss": round(-gross_loss / len(losers), 4) if losers else 0.0,
        "largest_win": round(max(winners), 4) if winners else 0.0,
        "largest_loss": round(min(losers), 4) if losers else 0.0,
        "profit_factor": round(profit_factor, 4) if profit_factor is not None else None,
    }
