"""Market regime classification.

The classifier is an ordered decision table: the first rule whose predicate
matches wins, and SIDEWAYS is the fallback. Thresholds live in RegimeConfig.
Classification is total: missing or non-finite features are treated as
neutral and indicator failures drop the feature instead of raising.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable

from signalcore.errors import SignalEngineError
from signalcore.indicators import compute_adx, compute_bollinger, compute_rsi
from signalcore.models.config import EngineConfig, IndicatorConfig, RegimeConfig, ScoringConfig
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.signal import MarketRegime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegimeFeatures:
    """Inputs of the decision table. None means "unknown"."""

    change_pct: float = 0.0
    spread_pct: float | None = None
    rsi: float | None = None
    adx: float | None = None
    percent_b: float | None = None

    @classmethod
    def extract(
        cls,
        snapshot: PriceSnapshot,
        window: CandleWindow | None = None,
        indicators: IndicatorConfig | None = None,
    ) -> RegimeFeatures:
        indicators = indicators or IndicatorConfig()
        rsi = adx = percent_b = None

        if window is not None and len(window) > 0:
            closes = window.closes()
            highs, lows = window.highs(), window.lows()
            try:
                rsi = compute_rsi(closes, indicators.rsi_period).value
            except SignalEngineError as e:
                logger.debug("Regime feature rsi unavailable for %s: %s", snapshot.symbol, e)
            try:
                adx = compute_adx(highs, lows, closes, indicators.adx_period).value
            except SignalEngineError as e:
                logger.debug("Regime feature adx unavailable for %s: %s", snapshot.symbol, e)
            try:
                percent_b = compute_bollinger(
                    closes, indicators.ma_period, indicators.bollinger_std
                ).value
            except SignalEngineError as e:
                logger.debug("Regime feature %%B unavailable for %s: %s", snapshot.symbol, e)

        return cls(
            change_pct=_finite_or(snapshot.change_24h, 0.0),
            spread_pct=_finite_or(snapshot.spread_pct, None),
            rsi=_finite_or(rsi, None),
            adx=_finite_or(adx, None),
            percent_b=_finite_or(percent_b, None),
        )


def _finite_or(value, default):
    if value is None or not math.isfinite(value):
        return default
    return value


Predicate = Callable[[RegimeFeatures, RegimeConfig], bool]


def _high_volatility(f: RegimeFeatures, c: RegimeConfig) -> bool:
    return (
        f.spread_pct is not None
        and f.spread_pct > c.high_volatility_spread_pct
        and abs(f.change_pct) > c.high_volatility_change_pct
    )


def _low_volatility(f: RegimeFeatures, c: RegimeConfig) -> bool:
    return f.spread_pct is not None and f.spread_pct < c.low_volatility_spread_pct


def _bull(f: RegimeFeatures, c: RegimeConfig) -> bool:
    return f.change_pct > c.trend_change_pct and (f.rsi is None or f.rsi > 50)


def _bear(f: RegimeFeatures, c: RegimeConfig) -> bool:
    return f.change_pct < -c.trend_change_pct and (f.rsi is None or f.rsi < 50)


def _trending(f: RegimeFeatures, c: RegimeConfig) -> bool:
    return f.adx is not None and f.adx >= c.trending_adx


def _mean_reversion(f: RegimeFeatures, c: RegimeConfig) -> bool:
    if f.rsi is None or f.percent_b is None:
        return False
    rsi_neutral = c.mean_reversion_rsi_low <= f.rsi <= c.mean_reversion_rsi_high
    stretched = (
        f.percent_b < c.mean_reversion_percent_b_low
        or f.percent_b > c.mean_reversion_percent_b_high
    )
    return rsi_neutral and stretched


# Ordered by priority; first match wins
DECISION_TABLE: tuple[tuple[MarketRegime, Predicate], ...] = (
    (MarketRegime.HIGH_VOLATILITY, _high_volatility),
    (MarketRegime.LOW_VOLATILITY, _low_volatility),
    (MarketRegime.BULL_MARKET, _bull),
    (MarketRegime.BEAR_MARKET, _bear),
    (MarketRegime.TRENDING, _trending),
    (MarketRegime.MEAN_REVERSION, _mean_reversion),
)
FALLBACK_REGIME = MarketRegime.SIDEWAYS


def classify(features: RegimeFeatures, config: RegimeConfig | None = None) -> MarketRegime:
    """Run the decision table over precomputed features."""
    config = config or RegimeConfig()
    for regime, predicate in DECISION_TABLE:
        if predicate(features, config):
            return regime
    return FALLBACK_REGIME


def detect_regime(
    snapshot: PriceSnapshot,
    window: CandleWindow | None = None,
    config: EngineConfig | None = None,
) -> MarketRegime:
    """Classify the market regime for one asset. Never raises for a valid snapshot."""
    config = config or EngineConfig()
    features = RegimeFeatures.extract(snapshot, window, config.indicators)
    regime = classify(features, config.regime)
    logger.debug("Regime for %s: %s (%s)", snapshot.symbol, regime.value, features)
    return regime


def _check_exhaustive() -> None:
    reachable = {regime for regime, _ in DECISION_TABLE} | {FALLBACK_REGIME}
    missing = set(MarketRegime) - reachable
    if missing:
        raise RuntimeError(f"Regimes unreachable from decision table: {sorted(m.value for m in missing)}")
    unpriced = {r.value for r in MarketRegime} - set(ScoringConfig().regime_risk)
    if unpriced:
        raise RuntimeError(f"Regimes without base risk: {sorted(unpriced)}")


_check_exhaustive()
