"""Signal, regime and analysis output models."""

from datetime import datetime, timezone
from enum import Enum

import orjson
from pydantic import BaseModel, ConfigDict, Field, model_validator

from signalcore.models.market import PriceSnapshot
from signalcore.models.metrics import EmptyMetrics, StrategyMetrics


class Signal(str, Enum):
    """Qualitative trading signal."""

    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"

    @property
    def score(self) -> int:
        """Numeric score in [-100, 100]."""
        return _SIGNAL_SCORES[self]

    @property
    def direction(self) -> int:
        """1 for bullish, -1 for bearish, 0 for HOLD."""
        return (self.score > 0) - (self.score < 0)

    @property
    def is_bullish(self) -> bool:
        return self.direction > 0

    @property
    def is_bearish(self) -> bool:
        return self.direction < 0


_SIGNAL_SCORES = {
    Signal.STRONG_BUY: 100,
    Signal.BUY: 50,
    Signal.HOLD: 0,
    Signal.SELL: -50,
    Signal.STRONG_SELL: -100,
}


class Direction(int, Enum):
    """Trade direction."""

    LONG = 1
    SHORT = -1


class MarketRegime(str, Enum):
    """Discrete classification of current market behavior."""

    BULL_MARKET = "BULL_MARKET"
    BEAR_MARKET = "BEAR_MARKET"
    TRENDING = "TRENDING"
    SIDEWAYS = "SIDEWAYS"
    MEAN_REVERSION = "MEAN_REVERSION"
    LOW_VOLATILITY = "LOW_VOLATILITY"
    HIGH_VOLATILITY = "HIGH_VOLATILITY"


class CrashSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"

    @property
    def rank(self) -> int:
        return list(CrashSeverity).index(self)


class EntryStrength(str, Enum):
    WEAK = "WEAK"
    MODERATE = "MODERATE"
    STRONG = "STRONG"
    VERY_STRONG = "VERY_STRONG"

    @property
    def rank(self) -> int:
        return list(EntryStrength).index(self)


class IndicatorResult(BaseModel):
    """Raw indicator value with its qualitative classification."""

    model_config = ConfigDict(frozen=True)

    value: float
    signal: Signal = Signal.HOLD
    confidence: float = Field(default=0.0, ge=0, le=100)


class StrategySignal(BaseModel):
    """Output of one strategy for one analysis cycle."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    signal: Signal
    confidence: int = Field(ge=0, le=100)
    reasoning: str
    metrics: StrategyMetrics = Field(default_factory=EmptyMetrics)


class StrategyResult(BaseModel):
    """Fused result of all strategies for the detected regime."""

    model_config = ConfigDict(frozen=True)

    regime: MarketRegime
    signals: tuple[StrategySignal, ...] = ()
    primary_signal: StrategySignal
    overall_confidence: int = Field(ge=0, le=100)
    risk_score: int = Field(ge=0, le=100)
    agreement: float = Field(default=0.0, ge=0, le=1)
    excluded: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _primary_is_member(self):
        if self.signals and self.primary_signal not in self.signals:
            raise ValueError("primary_signal must be one of signals")
        return self


class CrashIndicators(BaseModel):
    model_config = ConfigDict(frozen=True)

    rapid_drop: bool = False
    volume_spike: bool = False
    oversold_extreme: bool = False
    high_volatility: bool = False

    @property
    def active_count(self) -> int:
        return sum(
            (self.rapid_drop, self.volume_spike, self.oversold_extreme, self.high_volatility)
        )

    def active_names(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if value]


class CrashSignal(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_crashing: bool
    severity: CrashSeverity
    confidence: int = Field(ge=0, le=100)
    indicators: CrashIndicators
    recommendation: str


class EntryIndicators(BaseModel):
    model_config = ConfigDict(frozen=True)

    trend_reversal: bool = False
    volume_increase: bool = False
    momentum_building: bool = False
    bullish_divergence: bool = False

    @property
    def active_count(self) -> int:
        return sum(
            (
                self.trend_reversal,
                self.volume_increase,
                self.momentum_building,
                self.bullish_divergence,
            )
        )

    def active_names(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if value]


class EntrySignal(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_optimal_entry: bool
    direction: Direction = Direction.LONG
    strength: EntryStrength
    confidence: int = Field(ge=0, le=100)
    indicators: EntryIndicators
    entry_price: float
    target_price: float
    stop_loss: float
    risk_reward: float = 0.0
    recommendation: str

    @model_validator(mode="after")
    def _levels_match_direction(self):
        if not self.is_optimal_entry:
            return self
        if self.direction == Direction.LONG:
            ordered = self.target_price > self.entry_price > self.stop_loss
        else:
            ordered = self.target_price < self.entry_price < self.stop_loss
        if not ordered:
            raise ValueError(
                f"{self.direction.name} entry levels out of order: target={self.target_price}, "
                f"entry={self.entry_price}, stop={self.stop_loss}"
            )
        return self


class NoiseScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: int = Field(ge=0, le=100)
    level: str  # LOW, MODERATE, HIGH, EXTREME


class AssetAnalysis(BaseModel):
    """Complete per-asset recommendation. Rebuilt wholesale every cycle."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    price: PriceSnapshot
    strategy_result: StrategyResult
    crash_signal: CrashSignal
    entry_signal: EntrySignal
    overall_signal: Signal
    confidence: int = Field(ge=0, le=100)
    risk_score: int = Field(ge=0, le=100)
    noise: NoiseScore
    recommendation: str

    @property
    def regime(self) -> MarketRegime:
        return self.strategy_result.regime

    def to_json(self) -> bytes:
        """Serialize to JSON bytes for the presentation layer."""
        return orjson.dumps(self.model_dump(mode="json"))
