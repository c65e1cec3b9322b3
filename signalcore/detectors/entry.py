"""Entry signal generation with target and stop levels.

Directional evidence is gathered for both sides first; the side with more
votes becomes the trade direction and the entry indicators are evaluated for
that side (for SHORT entries the reversal, momentum and divergence checks are
mirrored). Indicators that cannot be computed count as inactive, so the
generator never raises.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from signalcore.errors import SignalEngineError
from signalcore.indicators import (
    compute_adx,
    compute_atr,
    compute_macd,
    compute_rvi,
    compute_volume_profile,
    detect_divergence,
    ema,
    rsi_series,
)
from signalcore.models.config import EngineConfig
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.signal import (
    Direction,
    EntryIndicators,
    EntrySignal,
    EntryStrength,
    MarketRegime,
)

logger = logging.getLogger(__name__)

OPTIMAL_THRESHOLD = 2
RR_TOLERANCE = 1e-9  # Float noise when target/stop sit exactly on the minimum ratio

_STRENGTH_BY_COUNT = {
    4: EntryStrength.VERY_STRONG,
    3: EntryStrength.STRONG,
    2: EntryStrength.MODERATE,
}


@dataclass(frozen=True)
class _Evidence:
    """Directional readings for one window: +1 bullish, -1 bearish, 0 none."""

    ma_cross: int = 0
    rvi_cross: int = 0
    histogram: int = 0
    divergence: int = 0
    volume_ratio: float | None = None
    adx: float | None = None
    natr: float | None = None

    def votes(self, change: float) -> int:
        reversal = self.ma_cross or self.rvi_cross
        trend = (change > 0) - (change < 0)
        return reversal + self.histogram + self.divergence + trend


def generate_entry_signal(
    snapshot: PriceSnapshot,
    window: CandleWindow | None = None,
    regime: MarketRegime | None = None,
    config: EngineConfig | None = None,
) -> EntrySignal:
    """Assess whether now is a good entry and where to put target and stop."""
    config = config or EngineConfig()
    entry_cfg = config.entry
    change = snapshot.change_24h if math.isfinite(snapshot.change_24h) else 0.0

    evidence = _gather(snapshot.symbol, window, config)
    bias = evidence.votes(change)
    direction = Direction.SHORT if bias < 0 else Direction.LONG
    side = int(direction)

    indicators = EntryIndicators(
        trend_reversal=evidence.ma_cross == side or evidence.rvi_cross == side,
        volume_increase=evidence.volume_ratio is not None
        and evidence.volume_ratio >= entry_cfg.volume_increase_ratio,
        momentum_building=evidence.histogram == side,
        bullish_divergence=evidence.divergence == side,
    )
    count = indicators.active_count
    strength = _STRENGTH_BY_COUNT.get(count, EntryStrength.WEAK)
    entry = snapshot.price
    priced = math.isfinite(entry) and entry > 0
    is_optimal = priced and bias != 0 and count >= OPTIMAL_THRESHOLD

    target, stop, reward_pct, risk_pct = entry_levels(
        entry, direction, strength, regime, evidence.natr, config
    )
    ratio = reward_pct / risk_pct if risk_pct > 0 else 0.0
    risk_reward = round(ratio, 2)

    demoted = is_optimal and ratio < entry_cfg.min_risk_reward - RR_TOLERANCE
    if demoted:
        logger.debug(
            "Entry for %s demoted: risk/reward %.4f below %.2f",
            snapshot.symbol,
            ratio,
            entry_cfg.min_risk_reward,
        )
        is_optimal = False

    adx = evidence.adx or 0.0
    confidence = round(count / 4 * 70 + min(adx, 100) / 100 * 30)

    if is_optimal:
        recommendation = entry_recommendation(direction, strength, entry, target, stop, risk_reward)
    elif demoted:
        recommendation = (
            f"Not optimal entry. Risk/Reward {ratio:.3f}:1 is below the "
            f"{entry_cfg.min_risk_reward:.2f}:1 minimum."
        )
    else:
        side_name = "bull" if direction == Direction.LONG else "bear"
        recommendation = f"Not optimal entry. Wait for stronger {side_name} signals."

    return EntrySignal(
        is_optimal_entry=is_optimal,
        direction=direction,
        strength=strength,
        confidence=max(0, min(100, confidence)),
        indicators=indicators,
        entry_price=entry,
        target_price=target,
        stop_loss=stop,
        risk_reward=risk_reward,
        recommendation=recommendation,
    )


def entry_levels(
    entry: float,
    direction: Direction,
    strength: EntryStrength,
    regime: MarketRegime | None,
    natr: float | None,
    config: EngineConfig | None = None,
) -> tuple[float, float, float, float]:
    """Return (target, stop, target_pct, stop_pct) for an entry price.

    The target scales with strength and regime; the stop tightens with
    strength but never below the ATR-based noise band or ``min_stop_pct``.
    """
    cfg = (config or EngineConfig()).entry
    multiplier = cfg.regime_target_multiplier[regime.value] if regime else 1.0
    target_pct = min(cfg.max_target_pct, cfg.target_pct[strength.value] * multiplier)

    atr_stop = natr * cfg.stop_atr_multiple / 100 if natr is not None else 0.0
    stop_pct = min(cfg.stop_pct[strength.value], max(cfg.min_stop_pct, atr_stop))

    side = int(direction)
    target = entry * (1 + side * target_pct)
    stop = entry * (1 - side * stop_pct)
    return target, stop, target_pct, stop_pct


def entry_recommendation(
    direction: Direction,
    strength: EntryStrength,
    entry: float,
    target: float,
    stop: float,
    risk_reward: float,
) -> str:
    side = "BULL" if direction == Direction.LONG else "BEAR"
    levels = (
        f"Entry: {_fmt_price(entry)}, Target: {_fmt_price(target)}, "
        f"Stop: {_fmt_price(stop)}. Risk/Reward: {risk_reward:.2f}:1."
    )
    if strength == EntryStrength.VERY_STRONG:
        return f"VERY STRONG {side} ENTRY: Multiple confirmations. {levels} Consider larger position."
    if strength == EntryStrength.STRONG:
        return f"STRONG {side} ENTRY: Good setup with confirmation. {levels}"
    if strength == EntryStrength.MODERATE:
        return f"MODERATE {side} ENTRY: Decent setup but watch closely. {levels} Use smaller position."
    return f"WEAK {side} SIGNAL: Entry possible but risky. Consider waiting for stronger confirmation."


def _fmt_price(price: float) -> str:
    return f"{price:.2f}" if price >= 1 else f"{price:.6g}"


def _gather(symbol: str, window: CandleWindow | None, config: EngineConfig) -> _Evidence:
    if window is None or len(window) == 0:
        return _Evidence()

    p = config.indicators
    entry_cfg = config.entry
    closes, highs, lows = window.closes(), window.highs(), window.lows()
    readings: dict = {}

    try:
        readings["ma_cross"] = _ma_cross(
            closes, entry_cfg.fast_ma, entry_cfg.slow_ma, entry_cfg.crossover_lookback
        )
    except SignalEngineError as e:
        logger.debug("Entry MA cross skipped for %s: %s", symbol, e)
    try:
        cross = compute_rvi(window.opens(), highs, lows, closes, p.rvi_period).crossover
        readings["rvi_cross"] = {"BULLISH": 1, "BEARISH": -1}.get(cross, 0)
    except SignalEngineError as e:
        logger.debug("Entry RVI skipped for %s: %s", symbol, e)
    try:
        macd = compute_macd(closes, p.macd_fast, p.macd_slow, p.macd_signal)
        readings["histogram"] = 1 if macd.histogram_rising else -1 if macd.histogram_falling else 0
    except SignalEngineError as e:
        logger.debug("Entry MACD skipped for %s: %s", symbol, e)
    try:
        series = rsi_series(closes, p.rsi_period)
        readings["divergence"] = int(detect_divergence(closes, series, p.divergence_lookback).value)
    except SignalEngineError as e:
        logger.debug("Entry divergence skipped for %s: %s", symbol, e)
    try:
        readings["volume_ratio"] = compute_volume_profile(window.volumes(), p.volume_period).value
    except SignalEngineError as e:
        logger.debug("Entry volume skipped for %s: %s", symbol, e)
    try:
        readings["adx"] = compute_adx(highs, lows, closes, p.adx_period).value
    except SignalEngineError as e:
        logger.debug("Entry ADX skipped for %s: %s", symbol, e)
    try:
        readings["natr"] = compute_atr(highs, lows, closes, p.atr_period).normalized_atr
    except SignalEngineError as e:
        logger.debug("Entry ATR skipped for %s: %s", symbol, e)

    return _Evidence(**readings)


def _ma_cross(closes: list[float], fast: int, slow: int, lookback: int) -> int:
    """+1 if the fast EMA crossed above the slow EMA within ``lookback`` bars, -1 if below."""
    fast_line = ema(closes, fast)
    slow_line = ema(closes, slow)
    start = max(slow, len(closes) - lookback)
    for i in range(len(closes) - 1, start - 1, -1):
        prev_diff = fast_line[i - 1] - slow_line[i - 1]
        curr_diff = fast_line[i] - slow_line[i]
        if prev_diff <= 0 < curr_diff:
            return 1
        if prev_diff >= 0 > curr_diff:
            return -1
    return 0
