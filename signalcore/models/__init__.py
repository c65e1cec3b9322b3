"""Data models (pure pydantic, no I/O)."""

from signalcore.models.market import Candle, CandleWindow, PriceSnapshot
from signalcore.models.metrics import (
    BaseMetrics,
    BreakoutMetrics,
    EmptyMetrics,
    MeanReversionMetrics,
    MomentumMetrics,
    StrategyMetrics,
    VolatilityMetrics,
)
from signalcore.models.signal import (
    AssetAnalysis,
    CrashIndicators,
    CrashSeverity,
    CrashSignal,
    Direction,
    EntryIndicators,
    EntrySignal,
    EntryStrength,
    IndicatorResult,
    MarketRegime,
    NoiseScore,
    Signal,
    StrategyResult,
    StrategySignal,
)
from signalcore.models.config import (
    CrashConfig,
    EngineConfig,
    EntryConfig,
    IndicatorConfig,
    RegimeConfig,
    ScoringConfig,
)

__all__ = [
    # Market data
    "PriceSnapshot",
    "Candle",
    "CandleWindow",
    # Metrics
    "BaseMetrics",
    "MomentumMetrics",
    "MeanReversionMetrics",
    "BreakoutMetrics",
    "VolatilityMetrics",
    "EmptyMetrics",
    "StrategyMetrics",
    # Signals and analysis
    "Signal",
    "Direction",
    "MarketRegime",
    "CrashSeverity",
    "EntryStrength",
    "IndicatorResult",
    "StrategySignal",
    "StrategyResult",
    "CrashIndicators",
    "CrashSignal",
    "EntryIndicators",
    "EntrySignal",
    "NoiseScore",
    "AssetAnalysis",
    # Config
    "EngineConfig",
    "IndicatorConfig",
    "RegimeConfig",
    "ScoringConfig",
    "CrashConfig",
    "EntryConfig",
]
