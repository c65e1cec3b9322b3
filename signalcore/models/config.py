"""Engine configuration models.

Every threshold and blending weight used by the engine lives here so it can
be overridden from configuration instead of code. The scoring weights are
carried over from the production heuristics; they are tunable defaults, not
statistically validated constants.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

# Keyed defaults. Partial overrides (e.g. one strength in engine.yaml) are
# merged over these, so every key is always present.
REGIME_RISK = {
    "HIGH_VOLATILITY": 70,
    "BEAR_MARKET": 65,
    "SIDEWAYS": 45,
    "MEAN_REVERSION": 40,
    "TRENDING": 35,
    "LOW_VOLATILITY": 30,
    "BULL_MARKET": 25,
}
CRASH_CONFIDENCE_PENALTY = {"LOW": 0.1, "MEDIUM": 0.2, "HIGH": 0.35, "EXTREME": 0.5}
CRASH_RISK_FLOOR = {"LOW": 50, "MEDIUM": 60, "HIGH": 75, "EXTREME": 90}
TARGET_PCT = {"WEAK": 0.05, "MODERATE": 0.10, "STRONG": 0.15, "VERY_STRONG": 0.20}
STOP_PCT = {"WEAK": 0.12, "MODERATE": 0.10, "STRONG": 0.07, "VERY_STRONG": 0.05}
REGIME_TARGET_MULTIPLIER = {
    "BULL_MARKET": 1.2,
    "TRENDING": 1.1,
    "HIGH_VOLATILITY": 1.0,
    "LOW_VOLATILITY": 1.0,
    "SIDEWAYS": 0.9,
    "MEAN_REVERSION": 0.9,
    "BEAR_MARKET": 0.8,
}


def merge_keyed(field: str, value: dict, defaults: dict) -> dict:
    """Fill keys missing from a partial override with their defaults.

    Raises:
        ValueError: If the override names a key the defaults do not have.
    """
    unknown = sorted(set(value) - set(defaults))
    if unknown:
        raise ValueError(f"{field}: unknown keys {unknown}, expected a subset of {sorted(defaults)}")
    return {**defaults, **value}


class IndicatorConfig(BaseModel):
    """Indicator periods."""

    rsi_period: int = Field(default=14, ge=2)
    ma_period: int = Field(default=20, ge=2)  # SMA/EMA, Bollinger, Donchian
    bollinger_std: float = Field(default=2.0, gt=0)
    macd_fast: int = Field(default=12, ge=2)
    macd_slow: int = Field(default=26, ge=2)
    macd_signal: int = Field(default=9, ge=2)
    stochastic_k: int = Field(default=14, ge=2)
    stochastic_smooth: int = Field(default=3, ge=1)
    stochastic_d: int = Field(default=3, ge=1)
    atr_period: int = Field(default=14, ge=2)
    adx_period: int = Field(default=14, ge=2)
    rvi_period: int = Field(default=10, ge=2)
    ao_fast: int = Field(default=5, ge=2)
    ao_slow: int = Field(default=34, ge=2)
    volume_period: int = Field(default=20, ge=1)
    divergence_lookback: int = Field(default=20, ge=4)

    @model_validator(mode="after")
    def _fast_below_slow(self):
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be smaller than macd_slow")
        if self.ao_fast >= self.ao_slow:
            raise ValueError("ao_fast must be smaller than ao_slow")
        return self


class RegimeConfig(BaseModel):
    """Thresholds of the regime decision table (percentages unless noted)."""

    high_volatility_spread_pct: float = 10.0
    high_volatility_change_pct: float = 5.0
    low_volatility_spread_pct: float = 2.0
    trend_change_pct: float = 5.0
    trending_adx: float = 25.0
    mean_reversion_rsi_low: float = 30.0
    mean_reversion_rsi_high: float = 70.0
    mean_reversion_percent_b_low: float = 0.2
    mean_reversion_percent_b_high: float = 0.8


class ScoringConfig(BaseModel):
    """Blending weights for confidence and risk."""

    primary_weight: float = Field(default=0.7, ge=0, le=1)
    agreement_weight: float = Field(default=0.3, ge=0, le=1)

    # Base risk by regime (20-70 range)
    regime_risk: dict[str, int] = Field(default_factory=lambda: dict(REGIME_RISK))
    risk_floor: int = 15
    risk_ceiling: int = 85
    confidence_risk_factor: float = 0.3
    low_volatility_atr_pct: float = 2.0
    elevated_volatility_atr_pct: float = 4.0
    high_volatility_atr_pct: float = 6.0
    disagreement_risk_factor: float = 20.0

    @field_validator("regime_risk")
    @classmethod
    def _complete_regime_risk(cls, value: dict[str, int]) -> dict[str, int]:
        return merge_keyed("regime_risk", value, REGIME_RISK)


class CrashConfig(BaseModel):
    rapid_drop_pct: float = 15.0  # 24h drop at or beyond this is a rapid drop
    volume_spike_ratio: float = 2.0  # Volume doubled versus typical
    oversold_rsi: float = 20.0
    high_volatility_atr_pct: float = 10.0
    high_volatility_spread_pct: float = 10.0

    # Drop magnitudes that escalate severity. Tunable; severe must stay at or
    # below rapid_drop_pct for a 3-indicator rapid drop to read as HIGH.
    severe_drop_pct: float = Field(default=15.0, gt=0)
    extreme_drop_pct: float = Field(default=30.0, gt=0)
    # Share of confidence driven by drop magnitude; the rest by indicator count
    drop_confidence_weight: float = Field(default=0.2, ge=0, le=1)

    # Confidence reduction and risk floor applied by the orchestrator
    confidence_penalty: dict[str, float] = Field(
        default_factory=lambda: dict(CRASH_CONFIDENCE_PENALTY)
    )
    risk_floor: dict[str, int] = Field(default_factory=lambda: dict(CRASH_RISK_FLOOR))

    @field_validator("confidence_penalty", "risk_floor")
    @classmethod
    def _complete_by_severity(cls, value: dict, info: ValidationInfo) -> dict:
        defaults = {
            "confidence_penalty": CRASH_CONFIDENCE_PENALTY,
            "risk_floor": CRASH_RISK_FLOOR,
        }[info.field_name]
        return merge_keyed(info.field_name, value, defaults)

    @model_validator(mode="after")
    def _severe_below_extreme(self):
        if self.severe_drop_pct > self.extreme_drop_pct:
            raise ValueError("severe_drop_pct must not exceed extreme_drop_pct")
        return self


class EntryConfig(BaseModel):
    fast_ma: int = Field(default=9, ge=2)
    slow_ma: int = Field(default=21, ge=2)
    crossover_lookback: int = Field(default=3, ge=1)
    volume_increase_ratio: float = 1.2

    # Target/stop percentages by strength
    target_pct: dict[str, float] = Field(default_factory=lambda: dict(TARGET_PCT))
    stop_pct: dict[str, float] = Field(default_factory=lambda: dict(STOP_PCT))
    regime_target_multiplier: dict[str, float] = Field(
        default_factory=lambda: dict(REGIME_TARGET_MULTIPLIER)
    )
    stop_atr_multiple: float = 1.5
    min_stop_pct: float = 0.02
    max_target_pct: float = 0.9
    min_risk_reward: float = Field(default=1.5, gt=0)

    @field_validator("target_pct", "stop_pct", "regime_target_multiplier")
    @classmethod
    def _complete_keys(cls, value: dict[str, float], info: ValidationInfo) -> dict[str, float]:
        defaults = {
            "target_pct": TARGET_PCT,
            "stop_pct": STOP_PCT,
            "regime_target_multiplier": REGIME_TARGET_MULTIPLIER,
        }[info.field_name]
        merged = merge_keyed(info.field_name, value, defaults)
        if any(v <= 0 for v in merged.values()):
            raise ValueError(f"{info.field_name}: values must be positive")
        return merged

    @model_validator(mode="after")
    def _fast_below_slow(self):
        if self.fast_ma >= self.slow_ma:
            raise ValueError("fast_ma must be smaller than slow_ma")
        return self


class EngineConfig(BaseModel):
    """Top-level engine configuration."""

    indicators: IndicatorConfig = IndicatorConfig()
    regime: RegimeConfig = RegimeConfig()
    scoring: ScoringConfig = ScoringConfig()
    crash: CrashConfig = CrashConfig()
    entry: EntryConfig = EntryConfig()
