"""Breakout strategy for low-volatility compression.

Looks for a Bollinger squeeze and scores the likely breakout side:
    squeeze (40)      scaled by squeeze intensity, side from close vs middle band
    Donchian (30)     close in the top/bottom fifth of the channel
    volume (20)       volume ROC above 20%, side from the 24h change
    ATR (10)          expanding volatility, side from the 24h change
"""

from __future__ import annotations

from signalcore.indicators import (
    compute_adx,
    compute_atr,
    compute_bollinger,
    compute_donchian,
    compute_volume_profile,
)
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.metrics import BreakoutMetrics
from signalcore.models.signal import MarketRegime, StrategySignal
from signalcore.scoring import clamp, score_to_signal
from signalcore.strategy.protocol import BaseStrategy
from signalcore.strategy.registry import register_strategy

SQUEEZE_BANDWIDTH = 0.1  # (upper - lower) / middle below this is a squeeze
VOLUME_SURGE_PCT = 20.0


@register_strategy("breakout")
class BreakoutStrategy(BaseStrategy):
    regimes = frozenset({MarketRegime.LOW_VOLATILITY})

    def evaluate(self, snapshot: PriceSnapshot, window: CandleWindow) -> StrategySignal:
        p = self.periods
        closes, highs, lows = window.closes(), window.highs(), window.lows()

        bands = compute_bollinger(closes, p.ma_period, p.bollinger_std)
        atr = compute_atr(highs, lows, closes, p.atr_period)
        volume = compute_volume_profile(window.volumes(), p.volume_period)
        donchian = compute_donchian(highs, lows, closes, p.ma_period)
        adx = compute_adx(highs, lows, closes, p.adx_period)

        squeezing = bands.bandwidth < SQUEEZE_BANDWIDTH
        intensity = round((1 - bands.bandwidth / SQUEEZE_BANDWIDTH) * 100) if squeezing else 0
        side = 1 if closes[-1] > bands.middle else -1 if closes[-1] < bands.middle else 0
        change_side = 1 if snapshot.change_24h > 0 else -1 if snapshot.change_24h < 0 else 0

        score = 0.0
        if squeezing:
            score += intensity / 100 * 40 * side
        if donchian.value > 0.8:
            score += 30
        elif donchian.value < 0.2:
            score -= 30
        if volume.roc_pct > VOLUME_SURGE_PCT:
            score += 20 * change_side
        if atr.volatility_level in ("HIGH", "VERY_HIGH"):
            score += 10 * change_side
        score = clamp(score, -100, 100)

        confidence = (
            intensity * 0.5
            + clamp(volume.roc_pct, 0, 100) * 0.3
            + abs(score) * 0.2
        )
        metrics = BreakoutMetrics(
            bandwidth=bands.bandwidth,
            squeeze_intensity=intensity,
            normalized_atr=atr.normalized_atr,
            volume_ratio=volume.value,
            donchian_position=donchian.value,
            adx=adx.value,
        )
        reasoning = _reasoning(
            squeezing, intensity, side, volume.roc_pct, atr.volatility_level, donchian.value
        )
        return self.build_signal(score_to_signal(score), confidence, reasoning, metrics)


def _reasoning(
    squeezing: bool,
    intensity: int,
    side: int,
    volume_roc: float,
    volatility_level: str,
    donchian_position: float,
) -> str:
    parts = []
    if squeezing:
        parts.append(f"Bollinger Squeeze detected ({intensity}% intensity)")
        if side:
            parts.append(f"potential {'bullish' if side > 0 else 'bearish'} breakout")
    else:
        parts.append("no squeeze pattern detected")

    if volume_roc > 100:
        parts.append("strong volume surge")
    elif volume_roc > VOLUME_SURGE_PCT:
        parts.append("increasing volume")

    if volatility_level in ("HIGH", "VERY_HIGH"):
        parts.append("volatility expanding")
    elif volatility_level in ("LOW", "VERY_LOW"):
        parts.append("volatility contracting")

    if donchian_position > 0.8:
        parts.append("price near upper channel")
    elif donchian_position < 0.2:
        parts.append("price near lower channel")

    return ", ".join(parts)
