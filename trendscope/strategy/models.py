"""Strategy data models — typed representations for signal inputs and outputs."""

from dataclasses import asdict, dataclass, field
from typing import Literal, Optional

SignalType = Literal["LONG", "SHORT", "NEUTRAL"]
Trend = Literal["UP", "DOWN"]
HigherTrend = Literal["STRONG_UP", "UP", "NEUTRAL", "DOWN", "STRONG_DOWN"]
Regime = Literal["TRENDING", "RANGING"]


@dataclass(frozen=True)
class Bar:
    """A single OHLCV bar. ``time`` is the bar open time in epoch seconds."""

    time: float
    open: float
    high: float
    low: float
    close: float
    volume: float


# ── Strategy parameters ──────────────────────────────────────────────────

# Input aliases accepted by ``StrategyParams.from_dict`` (dashboard format).
_PARAM_ALIASES: dict[str, str] = {
    "rsiLower": "rsi_lower",
    "rsiUpper": "rsi_upper",
    "tpMult": "tp_mult",
    "slMult": "sl_mult",
    "adxThreshold": "adx_threshold",
}


@dataclass(frozen=True)
class StrategyParams:
    """Tunable strategy configuration, passed by value into every evaluation.

    Raises ``ValueError`` on construction when the bounds are inconsistent.
    """

    rsi_lower: float = 30.0
    rsi_upper: float = 70.0
    tp_mult: float = 2.0
    sl_mult: float = 1.5
    adx_threshold: float = 25.0

    def __post_init__(self) -> None:
        if not 0 < self.rsi_lower < 100:
            raise ValueError(f"rsi_lower must be in (0, 100), got {self.rsi_lower}")
        if not 0 < self.rsi_upper < 100:
            raise ValueError(f"rsi_upper must be in (0, 100), got {self.rsi_upper}")
        if self.rsi_lower >= self.rsi_upper:
            raise ValueError(
                f"rsi_lower ({self.rsi_lower}) must be below "
                f"rsi_upper ({self.rsi_upper})"
            )
        if self.tp_mult <= 0:
            raise ValueError(f"tp_mult must be positive, got {self.tp_mult}")
        if self.sl_mult <= 0:
            raise ValueError(f"sl_mult must be positive, got {self.sl_mult}")
        if not 0 <= self.adx_threshold <= 100:
            raise ValueError(
                f"adx_threshold must be in [0, 100], got {self.adx_threshold}"
            )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "StrategyParams":
        """Build params from a dict, accepting snake_case or camelCase keys.

        Unknown keys are ignored; missing keys keep their defaults.
        """
        known = {f for f in cls.__dataclass_fields__}
        kwargs: dict[str, float] = {}
        for key, value in data.items():
            name = _PARAM_ALIASES.get(key, key)
            if name in known:
                kwargs[name] = float(value)
        return cls(**kwargs)


DEFAULT_PARAMS = StrategyParams()


# ── Indicator values ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class MACDResult:
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float


@dataclass(frozen=True)
class VolumeAnalysis:
    is_spike: bool
    ratio: float


@dataclass(frozen=True)
class PivotPoints:
    pp: float
    r1: float
    s1: float
    r2: float
    s2: float


@dataclass(frozen=True)
class IchimokuCloud:
    """Ichimoku lines at the latest bar. Spans are ``None`` without history."""

    tenkan: float
    kijun: float
    span_a: Optional[float]
    span_b: Optional[float]


# ── News / sentiment inputs ──────────────────────────────────────────────


@dataclass(frozen=True)
class NewsItem:
    """A headline from the news feed. Only ``title`` is scored."""

    title: str
    source: str = ""
    url: str = ""
    published_time: Optional[float] = None


@dataclass(frozen=True)
class ExternalSentiment:
    """Pre-scored sentiment from an AI classifier, score in [-10, 10]."""

    score: float
    reasoning: str = ""


# ── Signal output ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Every indicator value the engine looked at for one evaluation."""

    rsi: float
    macd: MACDResult
    bb: BollingerBands
    atr: float
    adx: float
    volume: VolumeAnalysis
    trend: Trend
    trend_higher: HigherTrend
    patterns: tuple[str, ...]
    sentiment: float
    sentiment_note: str
    pivots: PivotPoints
    ema50: float
    ema200: Optional[float] = None
    ichimoku: Optional[IchimokuCloud] = None


@dataclass(frozen=True)
class Signal:
    """A trading decision produced by the signal engine.

    NEUTRAL signals carry zero price levels and leverage 1.
    """

    type: SignalType
    entry: float
    sl: float
    tp: float
    tp1: float
    tp2: float
    tp3: float
    leverage: int
    score: float
    reason: str
    regime: Regime
    indicators: IndicatorSnapshot = field(repr=False)

    @property
    def is_active(self) -> bool:
        return self.type != "NEUTRAL"
