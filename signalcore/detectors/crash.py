"""Crash detection.

Four boolean stress indicators are evaluated independently; any indicator
whose input is missing or cannot be computed is simply false, so detection
never raises.
"""

from __future__ import annotations

import logging
import math

from signalcore.errors import SignalEngineError
from signalcore.indicators import compute_atr, compute_rsi, compute_volume_profile
from signalcore.models.config import CrashConfig, EngineConfig
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.signal import CrashIndicators, CrashSeverity, CrashSignal

logger = logging.getLogger(__name__)

CRASH_THRESHOLD = 2  # Active indicators needed to call it a crash

_SEVERITY_BY_COUNT = {
    4: CrashSeverity.HIGH,
    3: CrashSeverity.MEDIUM,
    2: CrashSeverity.LOW,
}


def crash_severity(count: int, drop: float, config: CrashConfig) -> CrashSeverity:
    """Severity from the active indicator count and the 24h drop (positive percent).

    2 indicators read LOW, 3 MEDIUM, 4 HIGH. A drop beyond ``severe_drop_pct``
    lifts 3 indicators to HIGH; a drop beyond ``extreme_drop_pct`` lifts any
    crash to at least HIGH and 4 indicators to EXTREME. Severity never falls
    as the count rises for the same drop.
    """
    if count < CRASH_THRESHOLD:
        return CrashSeverity.LOW
    if count >= 4 and drop >= config.extreme_drop_pct:
        return CrashSeverity.EXTREME
    severity = _SEVERITY_BY_COUNT[min(count, 4)]
    if drop >= config.extreme_drop_pct or (count >= 3 and drop >= config.severe_drop_pct):
        severity = max(severity, CrashSeverity.HIGH, key=lambda s: s.rank)
    return severity


def crash_confidence(count: int, drop: float, config: CrashConfig) -> int:
    """Blend of indicator count and drop magnitude (capped at ``extreme_drop_pct``), 0-100."""
    weight = config.drop_confidence_weight
    drop_share = min(1.0, max(0.0, drop) / config.extreme_drop_pct)
    return round(((1 - weight) * count / 4 + weight * drop_share) * 100)


def detect_crash(
    snapshot: PriceSnapshot,
    window: CandleWindow | None = None,
    config: EngineConfig | None = None,
) -> CrashSignal:
    """Evaluate crash indicators for one asset."""
    config = config or EngineConfig()
    crash = config.crash
    periods = config.indicators
    change = snapshot.change_24h if math.isfinite(snapshot.change_24h) else 0.0

    volume_ratio = rsi = natr = None
    if window is not None and len(window) > 0:
        closes = window.closes()
        try:
            volume_ratio = compute_volume_profile(window.volumes(), periods.volume_period).value
        except SignalEngineError as e:
            logger.debug("Crash volume check skipped for %s: %s", snapshot.symbol, e)
        try:
            rsi = compute_rsi(closes, periods.rsi_period).value
        except SignalEngineError as e:
            logger.debug("Crash RSI check skipped for %s: %s", snapshot.symbol, e)
        try:
            natr = compute_atr(
                window.highs(), window.lows(), closes, periods.atr_period
            ).normalized_atr
        except SignalEngineError as e:
            logger.debug("Crash ATR check skipped for %s: %s", snapshot.symbol, e)

    spread = snapshot.spread_pct
    indicators = CrashIndicators(
        rapid_drop=change <= -crash.rapid_drop_pct,
        volume_spike=volume_ratio is not None and volume_ratio >= crash.volume_spike_ratio,
        oversold_extreme=rsi is not None and rsi < crash.oversold_rsi,
        high_volatility=(natr is not None and natr > crash.high_volatility_atr_pct)
        or (spread is not None and spread > crash.high_volatility_spread_pct),
    )

    count = indicators.active_count
    is_crashing = count >= CRASH_THRESHOLD
    drop = max(0.0, -change)
    severity = crash_severity(count, drop, crash)

    if is_crashing:
        logger.info(
            "Crash detected for %s: severity=%s indicators=%s",
            snapshot.symbol,
            severity.value,
            indicators.active_names(),
        )

    return CrashSignal(
        is_crashing=is_crashing,
        severity=severity,
        confidence=crash_confidence(count, drop, crash),
        indicators=indicators,
        recommendation=crash_recommendation(is_crashing, severity, change),
    )


def crash_recommendation(is_crashing: bool, severity: CrashSeverity, change: float) -> str:
    if not is_crashing:
        return "No crash detected. Normal market conditions."
    if severity == CrashSeverity.EXTREME:
        return (
            f"EXTREME CRASH: {abs(change):.1f}% drop. AVOID buying. "
            "Wait for stabilization. Consider stop-losses."
        )
    if severity == CrashSeverity.HIGH:
        return (
            "HIGH SEVERITY CRASH: Significant selling pressure. "
            "Wait for RSI to recover above 30 before considering entry."
        )
    if severity == CrashSeverity.MEDIUM:
        return (
            "MEDIUM CRASH: Market stress detected. Only enter with tight stop-losses. "
            "Watch for reversal signals."
        )
    return "LOW SEVERITY: Minor crash indicators. Monitor closely but not critical yet."
