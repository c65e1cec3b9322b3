"""Volatility strategy for high-volatility markets.

Follows the prevailing move and only fades it on clear exhaustion:
    trend (40)        24h change agrees with the MACD line
    momentum (30)     close vs EMA, confirmed by RSI side of 50
    exhaustion (-30)  close outside the bands, RSI extreme and MACD histogram turning

The score is damped by historical volatility and uses stricter signal
thresholds (40 / 70) than the other strategies.
"""

from __future__ import annotations

from signalcore.indicators import (
    compute_adx,
    compute_atr,
    compute_bollinger,
    compute_historical_volatility,
    compute_macd,
    compute_rsi,
    ema,
)
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.metrics import VolatilityMetrics
from signalcore.models.signal import MarketRegime, StrategySignal
from signalcore.scoring import clamp, score_to_signal
from signalcore.strategy.protocol import BaseStrategy
from signalcore.strategy.registry import register_strategy

STRONG_THRESHOLD = 70
WEAK_THRESHOLD = 40
EXHAUSTED_RSI_HIGH = 80.0
EXHAUSTED_RSI_LOW = 20.0


@register_strategy("volatility")
class VolatilityStrategy(BaseStrategy):
    regimes = frozenset({MarketRegime.HIGH_VOLATILITY})

    def evaluate(self, snapshot: PriceSnapshot, window: CandleWindow) -> StrategySignal:
        p = self.periods
        closes, highs, lows = window.closes(), window.highs(), window.lows()

        atr = compute_atr(highs, lows, closes, p.atr_period)
        hv = compute_historical_volatility(closes, p.ma_period).value
        bands = compute_bollinger(closes, p.ma_period, p.bollinger_std)
        rsi = compute_rsi(closes, p.rsi_period)
        macd = compute_macd(closes, p.macd_fast, p.macd_slow, p.macd_signal)
        adx = compute_adx(highs, lows, closes, p.adx_period)
        trend_ema = ema(closes, p.ma_period)[-1]

        change = snapshot.change_24h
        score = 0.0

        if change > 0 and macd.value > 0:
            score += 40
        elif change < 0 and macd.value < 0:
            score -= 40

        last = closes[-1]
        if last > trend_ema and rsi.value > 50:
            score += 30
        elif last < trend_ema and rsi.value < 50:
            score -= 30

        exhausted_up = (
            bands.percent_b > 1 and rsi.value > EXHAUSTED_RSI_HIGH and macd.histogram_falling
        )
        exhausted_down = (
            bands.percent_b < 0 and rsi.value < EXHAUSTED_RSI_LOW and macd.histogram_rising
        )
        if exhausted_up:
            score -= 30
        elif exhausted_down:
            score += 30

        score *= 1 - min(hv / 100, 0.3)
        score = clamp(score, -100, 100)

        signal = score_to_signal(score, strong=STRONG_THRESHOLD, weak=WEAK_THRESHOLD)
        confidence = abs(score) * (1 - min(hv / 200, 0.4))

        metrics = VolatilityMetrics(
            normalized_atr=atr.normalized_atr,
            historical_volatility=hv,
            bandwidth=bands.bandwidth,
            percent_b=bands.percent_b,
            rsi=rsi.value,
            adx=adx.value,
        )
        reasoning = _reasoning(hv, score, exhausted_up or exhausted_down, rsi.zone)
        return self.build_signal(signal, confidence, reasoning, metrics)


def _reasoning(hv: float, score: float, exhausted: bool, rsi_zone: str) -> str:
    parts = [f"High volatility environment ({hv:.1f}%)"]

    if score > 0:
        parts.append("trend and momentum point up")
    elif score < 0:
        parts.append("trend and momentum point down")
    else:
        parts.append("no dominant direction")

    if exhausted:
        parts.append("move looks exhausted beyond the bands")
    if rsi_zone != "NEUTRAL":
        parts.append(f"RSI {rsi_zone.lower()}")

    parts.append("exercise caution due to high volatility")
    return ", ".join(parts)
