"""Typed metric payloads attached to strategy signals.

Each strategy family emits its own metrics model. The models form a tagged
union on ``kind`` so consumers know exactly which metrics a strategy
produces, while the shared accessors on ``BaseMetrics`` cover the values
the executor and orchestrator need from any family.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class BaseMetrics(BaseModel):
    """Shared accessor interface for strategy metrics."""

    model_config = ConfigDict(frozen=True)

    def get(self, name: str, default: float | None = None) -> float | None:
        """Return a metric by name, or default if this family does not emit it."""
        if name == "kind" or name not in type(self).model_fields:
            return default
        value = getattr(self, name)
        return default if value is None else value

    def as_dict(self) -> dict[str, float]:
        """Flatten to a name -> value mapping (the ``kind`` tag is dropped)."""
        return {
            key: value
            for key, value in self.model_dump(exclude={"kind"}).items()
            if value is not None
        }

    @property
    def volatility_pct(self) -> float | None:
        """Normalized ATR (percent of price), when the family reports it."""
        return self.get("normalized_atr")

    @property
    def agreement_ratio(self) -> float | None:
        """Indicator agreement as a 0-1 ratio, when the family reports it."""
        value = self.get("indicator_agreement")
        return None if value is None else value / 100

    @property
    def trend_strength(self) -> float | None:
        """ADX value, when the family reports it."""
        return self.get("adx")


class MomentumMetrics(BaseMetrics):
    kind: Literal["momentum"] = "momentum"

    rsi: float
    macd_trend: int  # 1 bullish, -1 bearish, 0 neutral
    adx: float
    normalized_atr: float
    indicator_agreement: float  # 0-100
    price_change_24h: float


class MeanReversionMetrics(BaseMetrics):
    kind: Literal["mean_reversion"] = "mean_reversion"

    percent_b: float
    distance_from_ma: float
    rsi: float
    stochastic_k: float
    normalized_atr: float | None = None


class BreakoutMetrics(BaseMetrics):
    kind: Literal["breakout"] = "breakout"

    bandwidth: float
    squeeze_intensity: float
    normalized_atr: float
    volume_ratio: float
    donchian_position: float
    adx: float


class VolatilityMetrics(BaseMetrics):
    kind: Literal["volatility"] = "volatility"

    normalized_atr: float
    historical_volatility: float
    bandwidth: float
    percent_b: float
    rsi: float
    adx: float


class EmptyMetrics(BaseMetrics):
    """Metrics of the synthetic HOLD signal used when no strategy ran."""

    kind: Literal["none"] = "none"


StrategyMetrics = Annotated[
    Union[
        MomentumMetrics,
        MeanReversionMetrics,
        BreakoutMetrics,
        VolatilityMetrics,
        EmptyMetrics,
    ],
    Field(discriminator="kind"),
]
