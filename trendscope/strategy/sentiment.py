"""News sentiment — keyword scoring with an optional external AI override."""

from typing import Optional, Sequence

from trendscope.strategy.models import ExternalSentiment, NewsItem

BULLISH_KEYWORDS = (
    "break", "surge", "bull", "high", "approve",
    "etf", "record", "upgrade", "buy", "greed",
)
BEARISH_KEYWORDS = (
    "crash", "drop", "bear", "low", "ban",
    "sec", "hack", "sell", "fear", "down",
)

# Headlines naming the traded coin count this many times.
SPECIFIC_WEIGHT = 3
SENTIMENT_LIMIT = 2.0


def _clamp(value: float, limit: float = SENTIMENT_LIMIT) -> float:
    return max(-limit, min(limit, value))


def base_symbol(symbol: str) -> str:
    """Strip the USDT quote currency: ``"BTCUSDT"`` → ``"BTC"``."""
    return symbol.replace("USDT", "") if symbol else ""


def score_headlines(
    news: Sequence[NewsItem],
    symbol: str = "",
    coin_name: str = "",
) -> float:
    """Keyword sentiment of *news* in [-2, 2].

    Every bullish keyword found in a (lower-cased) title adds one point
    and every bearish keyword subtracts one.  Matching is by substring, so
    ``"sec"`` also hits ``"second"``.  Titles mentioning the base symbol
    or *coin_name* are weighted ×3.  The sum is divided by 5 and clamped.
    """
    if not news:
        return 0.0

    base = base_symbol(symbol).lower()
    name = coin_name.lower()

    total = 0
    for item in news:
        title = item.title.lower()
        specific = (name and name in title) or (base and base in title)
        weight = SPECIFIC_WEIGHT if specific else 1
        for word in BULLISH_KEYWORDS:
            if word in title:
                total += weight
        for word in BEARISH_KEYWORDS:
            if word in title:
                total -= weight

    return _clamp(total / 5)


def resolve_sentiment(
    news: Sequence[NewsItem],
    external: Optional[ExternalSentiment] = None,
    symbol: str = "",
    coin_name: str = "",
) -> tuple[float, str]:
    """Pick the sentiment score used by the engine and describe its source.

    An external classifier score (range [-10, 10]) wins and is scaled by
    1/5; otherwise the keyword score of *news* is used.

    Returns ``(score, note)``.
    """
    if external is not None:
        return _clamp(external.score / 5), f"AI: {external.reasoning}"

    score = score_headlines(news, symbol, coin_name)
    if score > 0:
        note = "News: Bullish"
    elif score < 0:
        note = "News: Bearish"
    else:
        note = "News: Neutral"
    if abs(score) >= 1.5:
        note += " (Strong)"
    return score, note
