"""Mean reversion strategy for range-bound markets.

Buys stretched-down prices and sells stretched-up ones:
    %B (35)            proportional beyond 0.2 / 0.8
    MA distance (25)   -2.5 points per percent above the SMA
    RSI zone (25)
    stochastic zone (15)
"""

from __future__ import annotations

from signalcore.errors import SignalEngineError
from signalcore.indicators import (
    compute_atr,
    compute_bollinger,
    compute_rsi,
    compute_stochastic,
    distance_from_ma,
)
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.metrics import MeanReversionMetrics
from signalcore.models.signal import MarketRegime, StrategySignal
from signalcore.scoring import clamp, score_to_signal
from signalcore.strategy.protocol import BaseStrategy
from signalcore.strategy.registry import register_strategy

ZONE_POINTS = {"OVERSOLD": 1, "OVERBOUGHT": -1}


@register_strategy("mean_reversion")
class MeanReversionStrategy(BaseStrategy):
    regimes = frozenset({MarketRegime.MEAN_REVERSION, MarketRegime.SIDEWAYS})

    def evaluate(self, snapshot: PriceSnapshot, window: CandleWindow) -> StrategySignal:
        p = self.periods
        closes, highs, lows = window.closes(), window.highs(), window.lows()

        bands = compute_bollinger(closes, p.ma_period, p.bollinger_std)
        distance = distance_from_ma(closes, p.ma_period).value
        rsi = compute_rsi(closes, p.rsi_period)
        stochastic = compute_stochastic(
            highs, lows, closes, p.stochastic_k, p.stochastic_smooth, p.stochastic_d
        )
        try:
            natr = compute_atr(highs, lows, closes, p.atr_period).normalized_atr
        except SignalEngineError:
            natr = None

        percent_b = bands.percent_b
        score = 0.0
        if percent_b < 0.2:
            score += 35 * (1 - percent_b / 0.2)
        elif percent_b > 0.8:
            score -= 35 * ((percent_b - 0.8) / 0.2)

        score -= distance * 2.5
        score += 25 * ZONE_POINTS.get(rsi.zone, 0)
        score += 15 * ZONE_POINTS.get(stochastic.zone, 0)
        score = clamp(score, -100, 100)

        agreeing = sum(
            (
                percent_b < 0.2 or percent_b > 0.8,
                abs(distance) > 5,
                rsi.zone != "NEUTRAL",
                stochastic.zone != "NEUTRAL",
            )
        )
        confidence = min(100, abs(score) * 0.6 + agreeing / 4 * 100 * 0.4)

        metrics = MeanReversionMetrics(
            percent_b=percent_b,
            distance_from_ma=distance,
            rsi=rsi.value,
            stochastic_k=stochastic.value,
            normalized_atr=natr,
        )
        reasoning = _reasoning(percent_b, distance, rsi.zone, stochastic.zone)
        return self.build_signal(score_to_signal(score), confidence, reasoning, metrics)


def _reasoning(percent_b: float, distance: float, rsi_zone: str, stochastic_zone: str) -> str:
    if percent_b < 0.2:
        parts = ["price near lower Bollinger Band (oversold)"]
    elif percent_b > 0.8:
        parts = ["price near upper Bollinger Band (overbought)"]
    else:
        parts = ["price in middle of Bollinger Bands"]

    if distance < -5:
        parts.append(f"{abs(distance):.1f}% below moving average")
    elif distance > 5:
        parts.append(f"{distance:.1f}% above moving average")

    if rsi_zone == stochastic_zone and rsi_zone != "NEUTRAL":
        parts.append(f"confirmed by {rsi_zone.lower()} RSI and Stochastic")

    return ", ".join(parts)
