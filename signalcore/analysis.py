"""Per-asset analysis orchestrator.

Combines regime classification, strategy execution, crash detection and
entry generation into one AssetAnalysis. Pure: all data is passed in, the
result is rebuilt from scratch on every call.
"""

from __future__ import annotations

import logging
import math

from signalcore.detectors import detect_crash, generate_entry_signal
from signalcore.errors import AnalysisError
from signalcore.models.config import EngineConfig
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.signal import (
    AssetAnalysis,
    CrashSignal,
    Direction,
    EntrySignal,
    EntryStrength,
    Signal,
    StrategyResult,
)
from signalcore.regime import detect_regime
from signalcore.scoring import calculate_noise_score
from signalcore.strategy import StrategyExecutor

logger = logging.getLogger(__name__)

ACTIONS = {
    Signal.STRONG_BUY: "ACTION: Strong buy opportunity. Consider entering position.",
    Signal.BUY: "ACTION: Buy signal. Consider smaller position or DCA.",
    Signal.HOLD: "ACTION: Hold current positions. Wait for clearer signals.",
    Signal.SELL: "ACTION: Consider taking profits or reducing exposure.",
    Signal.STRONG_SELL: "ACTION: Exit positions. Protect capital.",
}

_STRONG_ENTRY = (EntryStrength.STRONG, EntryStrength.VERY_STRONG)
_UPGRADES = {
    (Direction.LONG, Signal.BUY): Signal.STRONG_BUY,
    (Direction.SHORT, Signal.SELL): Signal.STRONG_SELL,
}
KEY_DRIVER_COUNT = 3


def analyze(
    symbol: str,
    snapshot: PriceSnapshot,
    window: CandleWindow | None = None,
    config: EngineConfig | None = None,
    executor: StrategyExecutor | None = None,
) -> AssetAnalysis:
    """Analyze one asset.

    Raises:
        AnalysisError: If the snapshot is invalid or every strategy failed.
    """
    config = config or EngineConfig()
    executor = executor or StrategyExecutor(config)
    _validate(symbol, snapshot, window)
    window = window if window is not None else CandleWindow(symbol=symbol)

    regime = detect_regime(snapshot, window, config)
    strategy_result = executor.execute(snapshot, window, regime)
    if not strategy_result.signals:
        raise AnalysisError(strategy_result.primary_signal.reasoning, symbol)

    crash = detect_crash(snapshot, window, config)
    entry = generate_entry_signal(snapshot, window, regime, config)

    signal, confidence, risk = combine(strategy_result, crash, entry, config)
    noise = _noise(strategy_result)

    analysis = AssetAnalysis(
        symbol=symbol,
        price=snapshot,
        strategy_result=strategy_result,
        crash_signal=crash,
        entry_signal=entry,
        overall_signal=signal,
        confidence=confidence,
        risk_score=risk,
        noise=noise,
        recommendation=build_recommendation(signal, strategy_result, crash, entry),
    )
    logger.debug(
        "Analyzed %s: %s conf=%d risk=%d regime=%s",
        symbol,
        signal.value,
        confidence,
        risk,
        regime.value,
    )
    return analysis


def combine(
    strategy_result: StrategyResult,
    crash: CrashSignal,
    entry: EntrySignal,
    config: EngineConfig | None = None,
) -> tuple[Signal, int, int]:
    """Fuse strategy, crash and entry results into (signal, confidence, risk)."""
    config = config or EngineConfig()
    signal = strategy_result.primary_signal.signal
    confidence = float(strategy_result.overall_confidence)
    risk = strategy_result.risk_score

    if crash.is_crashing:
        if signal.is_bullish:
            signal = Signal.HOLD
        severity = crash.severity.value
        confidence *= 1 - config.crash.confidence_penalty[severity]
        risk = max(risk, config.crash.risk_floor[severity])
    elif entry.is_optimal_entry and entry.strength in _STRONG_ENTRY:
        upgraded = _UPGRADES.get((entry.direction, signal))
        if upgraded is not None:
            signal = upgraded
        if signal.direction == int(entry.direction):
            confidence = max(confidence, entry.confidence)

    return signal, max(0, min(100, round(confidence))), max(0, min(100, risk))


def build_recommendation(
    signal: Signal,
    strategy_result: StrategyResult,
    crash: CrashSignal,
    entry: EntrySignal,
) -> str:
    parts = [f"Market Regime: {strategy_result.regime.value}"]
    if crash.is_crashing:
        parts.append(crash.recommendation.rstrip("."))
    if entry.is_optimal_entry:
        parts.append(entry.recommendation.rstrip("."))

    primary = strategy_result.primary_signal
    if primary.reasoning:
        parts.append(primary.reasoning)

    drivers = _key_drivers(strategy_result)
    if drivers:
        parts.append(f"Key drivers: {drivers}")
    parts.append(ACTIONS[signal])
    return ". ".join(parts)


def _key_drivers(strategy_result: StrategyResult) -> str:
    metrics = strategy_result.primary_signal.metrics.as_dict()
    items = list(metrics.items())[:KEY_DRIVER_COUNT]
    return ", ".join(f"{name}={value:g}" for name, value in items)


def _noise(strategy_result: StrategyResult):
    adx = natr = agreement = None
    ordered = (strategy_result.primary_signal, *strategy_result.signals)
    for signal in ordered:
        metrics = signal.metrics
        adx = adx if adx is not None else metrics.trend_strength
        natr = natr if natr is not None else metrics.volatility_pct
        agreement = agreement if agreement is not None else metrics.agreement_ratio
    return calculate_noise_score(adx, natr, agreement)


def _validate(symbol: str, snapshot: PriceSnapshot, window: CandleWindow | None) -> None:
    if not symbol:
        raise AnalysisError("symbol is required")
    if snapshot.symbol.upper() != symbol.upper():
        raise AnalysisError(f"snapshot is for {snapshot.symbol}", symbol)
    if not math.isfinite(snapshot.price) or snapshot.price <= 0:
        raise AnalysisError(f"invalid price {snapshot.price}", symbol)
    if window is not None and len(window) > 0 and window.symbol.upper() != symbol.upper():
        raise AnalysisError(f"candle window is for {window.symbol}", symbol)
