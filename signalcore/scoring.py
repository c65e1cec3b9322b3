"""Scoring helpers shared by strategies, the executor and the orchestrator.

The numeric constants here (and the defaults in ScoringConfig) are heuristics
carried over from production use. Treat them as tunable defaults.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from signalcore.models.config import ScoringConfig
from signalcore.models.signal import MarketRegime, NoiseScore, Signal

DEFAULT_ADX = 25.0
DEFAULT_NORMALIZED_ATR = 3.0


@dataclass(frozen=True)
class Vote:
    """One indicator's directional vote inside a strategy (+1 buy, -1 sell, 0 neutral)."""

    name: str
    direction: int
    weight: float


@dataclass(frozen=True)
class Agreement:
    ratio: float  # 0-1, winning side weight / total weight
    direction: int  # +1, -1, or 0 on a tie


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def score_to_signal(score: float, strong: float = 60, weak: float = 20) -> Signal:
    """Map a score in [-100, 100] to a signal using strict thresholds."""
    if score > strong:
        return Signal.STRONG_BUY
    if score > weak:
        return Signal.BUY
    if score < -strong:
        return Signal.STRONG_SELL
    if score < -weak:
        return Signal.SELL
    return Signal.HOLD


def calculate_indicator_agreement(votes: Iterable[Vote]) -> Agreement:
    """Weighted share of the dominant side among all votes (neutral votes count toward the total)."""
    buy = sell = total = 0.0
    for vote in votes:
        total += vote.weight
        if vote.direction > 0:
            buy += vote.weight
        elif vote.direction < 0:
            sell += vote.weight

    if total <= 0:
        return Agreement(ratio=0.0, direction=0)

    direction = 1 if buy > sell else -1 if sell > buy else 0
    return Agreement(ratio=max(buy, sell) / total, direction=direction)


def calculate_confidence(
    signal_strength: float,
    agreement: float,
    trend_strength: float,
    volatility: float,
) -> int:
    """Confidence in [20, 90] from score magnitude, agreement (0-1), ADX and normalized ATR."""
    strength_part = abs(signal_strength) * 0.4
    agreement_part = 20 + agreement * 30
    trend_part = min(15.0, trend_strength * 0.4)

    if volatility < 2:
        volatility_adjust = -5
    elif volatility > 6:
        volatility_adjust = -10
    else:
        volatility_adjust = 5

    total = strength_part + agreement_part + trend_part + volatility_adjust
    return round(clamp(total, 20, 90))


def calculate_risk_score(
    regime: MarketRegime,
    confidence: float,
    volatility: float | None,
    agreement: float | None = None,
    config: ScoringConfig | None = None,
) -> int:
    """Risk in [risk_floor, risk_ceiling].

    Sum of the regime's base risk, a confidence adjustment, a volatility
    adjustment from normalized ATR and a disagreement adjustment. Unknown
    agreement adds a fixed penalty.
    """
    config = config or ScoringConfig()
    base = config.regime_risk[regime.value]
    confidence_adjust = (50 - confidence) * config.confidence_risk_factor

    volatility_adjust = 0
    if volatility is not None and math.isfinite(volatility):
        if volatility < config.low_volatility_atr_pct:
            volatility_adjust = -5
        elif volatility > config.high_volatility_atr_pct:
            volatility_adjust = 15
        elif volatility > config.elevated_volatility_atr_pct:
            volatility_adjust = 5

    if agreement is None:
        agreement_adjust = 5.0
    else:
        agreement_adjust = (0.5 - agreement) * config.disagreement_risk_factor

    total = base + confidence_adjust + volatility_adjust + agreement_adjust
    return round(clamp(total, config.risk_floor, config.risk_ceiling))


def calculate_noise_score(
    adx: float | None,
    normalized_atr: float | None,
    agreement: float | None = None,
) -> NoiseScore:
    """How noisy the market looks: weak trend, extreme volatility and disagreement raise it.

    ``agreement`` is a 0-1 ratio; when unknown the score is built from ADX and
    ATR alone.
    """
    adx = DEFAULT_ADX if adx is None or not math.isfinite(adx) else adx
    natr = (
        DEFAULT_NORMALIZED_ATR
        if normalized_atr is None or not math.isfinite(normalized_atr)
        else normalized_atr
    )

    adx_noise = clamp((35 - adx) * 2.85, 0, 100)

    if natr < 1:
        atr_noise = 40.0
    elif natr > 6:
        atr_noise = min(100.0, 40 + (natr - 6) * 10)
    elif natr > 4:
        atr_noise = (natr - 4) * 20
    else:
        atr_noise = 0.0

    if agreement is None:
        value = adx_noise * 0.55 + atr_noise * 0.45
    else:
        agreement_noise = clamp((0.6 - agreement) * 166, 0, 100)
        value = adx_noise * 0.4 + atr_noise * 0.3 + agreement_noise * 0.3

    value = round(clamp(value, 0, 100))
    if value < 30:
        level = "LOW"
    elif value < 55:
        level = "MODERATE"
    elif value < 75:
        level = "HIGH"
    else:
        level = "EXTREME"
    return NoiseScore(value=value, level=level)
