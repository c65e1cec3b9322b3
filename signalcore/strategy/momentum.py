"""Momentum strategy for directional markets (bull, bear, trending).

Weighted indicator votes:
    RSI (30)          trend-following: above 55 buys, below 45 sells
    MACD (30)         histogram trend
    24h change (25)   beyond +/-0.5%
    divergence (15)   RSI vs price divergence over the lookback window
"""

from __future__ import annotations

import logging

from signalcore.errors import InsufficientDataError
from signalcore.indicators import (
    compute_adx,
    compute_atr,
    compute_macd,
    compute_rsi,
    detect_divergence,
    rsi_series,
)
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.metrics import MomentumMetrics
from signalcore.models.signal import MarketRegime, StrategySignal
from signalcore.scoring import (
    Vote,
    calculate_confidence,
    calculate_indicator_agreement,
    score_to_signal,
)
from signalcore.strategy.protocol import BaseStrategy
from signalcore.strategy.registry import register_strategy

logger = logging.getLogger(__name__)

RSI_BULL = 55.0
RSI_BEAR = 45.0
CHANGE_THRESHOLD_PCT = 0.5


@register_strategy("momentum")
class MomentumStrategy(BaseStrategy):
    regimes = frozenset(
        {MarketRegime.BULL_MARKET, MarketRegime.BEAR_MARKET, MarketRegime.TRENDING}
    )

    def evaluate(self, snapshot: PriceSnapshot, window: CandleWindow) -> StrategySignal:
        p = self.periods
        closes, highs, lows = window.closes(), window.highs(), window.lows()

        rsi = compute_rsi(closes, p.rsi_period)
        macd = compute_macd(closes, p.macd_fast, p.macd_slow, p.macd_signal)
        adx = compute_adx(highs, lows, closes, p.adx_period)
        atr = compute_atr(highs, lows, closes, p.atr_period)
        divergence = self._divergence(snapshot.symbol, closes)

        macd_direction = {"BULLISH": 1, "BEARISH": -1}.get(macd.trend, 0)
        change = snapshot.change_24h

        votes = [
            Vote("rsi", 1 if rsi.value > RSI_BULL else -1 if rsi.value < RSI_BEAR else 0, 30),
            Vote("macd", macd_direction, 30),
            Vote(
                "change_24h",
                1 if change > CHANGE_THRESHOLD_PCT else -1 if change < -CHANGE_THRESHOLD_PCT else 0,
                25,
            ),
            Vote("divergence", divergence, 15),
        ]
        agreement = calculate_indicator_agreement(votes)
        score = sum(v.direction * v.weight for v in votes)

        signal = score_to_signal(score)
        confidence = calculate_confidence(
            score, agreement.ratio, adx.value, atr.normalized_atr
        )
        metrics = MomentumMetrics(
            rsi=rsi.value,
            macd_trend=macd_direction,
            adx=adx.value,
            normalized_atr=atr.normalized_atr,
            indicator_agreement=round(agreement.ratio * 100),
            price_change_24h=round(change, 2),
        )
        reasoning = _reasoning(agreement.ratio, rsi.value, macd.trend, adx.value)
        return self.build_signal(signal, confidence, reasoning, metrics)

    def _divergence(self, symbol: str, closes: list[float]) -> int:
        lookback = self.periods.divergence_lookback
        try:
            series = rsi_series(closes, self.periods.rsi_period)
            result = detect_divergence(closes, series, lookback)
        except InsufficientDataError as e:
            logger.debug("Divergence skipped for %s: %s", symbol, e)
            return 0
        return int(result.value)


def _reasoning(agreement: float, rsi: float, macd_trend: str, adx: float) -> str:
    parts = []

    agreement_pct = round(agreement * 100)
    if agreement_pct >= 70:
        parts.append(f"strong consensus ({agreement_pct}%)")
    elif agreement_pct >= 50:
        parts.append(f"moderate agreement ({agreement_pct}%)")
    else:
        parts.append(f"mixed signals ({agreement_pct}%)")

    if rsi > RSI_BULL:
        parts.append(f"RSI bullish ({round(rsi)})")
    elif rsi < RSI_BEAR:
        parts.append(f"RSI bearish ({round(rsi)})")

    if macd_trend != "NEUTRAL":
        parts.append(f"MACD {macd_trend.lower()}")

    if adx > 40:
        parts.append("strong trend")
    elif adx < 20:
        parts.append("weak trend")

    return ", ".join(parts)
