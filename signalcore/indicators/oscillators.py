"""Signal-line oscillators: Relative Vigor Index and Awesome Oscillator.

Both are smoothed with the symmetric (1, 2, 2, 1) / 6 kernel and compared with
a signal line built from the same kernel. A crossover needs the last two
samples of both lines:

    prev <= prev_signal and curr > curr_signal  ->  BULLISH
    prev >= prev_signal and curr < curr_signal  ->  BEARISH
"""

from typing import Sequence

import numpy as np

from signalcore.errors import ValidationError
from signalcore.indicators.indicators import OSC_DECIMALS, PCT_DECIMALS, PRICE_DECIMALS, _sma
from signalcore.indicators.results import OscillatorResult
from signalcore.indicators.validation import (
    as_series,
    require_length,
    require_same_length,
    validate_period,
)
from signalcore.models.signal import Signal

KERNEL_SPAN = 4


def symmetric_weighted(values: np.ndarray) -> np.ndarray:
    """Apply (v + 2*v[-1] + 2*v[-2] + v[-3]) / 6. Output has len(values) - 3 points."""
    if len(values) < KERNEL_SPAN:
        return np.empty(0)
    return (values[3:] + 2 * values[2:-1] + 2 * values[1:-2] + values[:-3]) / 6


def crossover(prev: float, prev_signal: float, curr: float, curr_signal: float) -> str:
    if prev <= prev_signal and curr > curr_signal:
        return "BULLISH"
    if prev >= prev_signal and curr < curr_signal:
        return "BEARISH"
    return "NONE"


def compute_rvi(
    opens: Sequence[float],
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 10,
) -> OscillatorResult:
    """Relative Vigor Index: conviction of closes relative to the bar range.

    RVI = SMA(kernel(close - open)) / SMA(kernel(high - low)); a zero range
    average gives 0. Requires period + 7 bars for two signal-line samples.
    """
    period = validate_period(period, "RVI")
    o = as_series(opens, "RVI", "opens")
    h = as_series(highs, "RVI", "highs")
    low = as_series(lows, "RVI", "lows")
    c = as_series(closes, "RVI", "closes")
    require_same_length("RVI", opens=o, highs=h, lows=low, closes=c)
    require_length(c, period + 7, "RVI")

    num = _sma(symmetric_weighted(c - o), period)[period - 1 :]
    den = _sma(symmetric_weighted(h - low), period)[period - 1 :]
    safe_den = np.where(den == 0, 1.0, den)
    rvi = np.where(den == 0, 0.0, num / safe_den)
    signal_line = symmetric_weighted(rvi)

    curr = round(float(rvi[-1]), PCT_DECIMALS)
    prev = round(float(rvi[-2]), PCT_DECIMALS)
    curr_sig = round(float(signal_line[-1]), PCT_DECIMALS)
    prev_sig = round(float(signal_line[-2]), PCT_DECIMALS)
    cross = crossover(prev, prev_sig, curr, curr_sig)

    if curr > 0.05:
        momentum = "POSITIVE"
    elif curr < -0.05:
        momentum = "NEGATIVE"
    else:
        momentum = "NEUTRAL"

    if cross == "BULLISH":
        signal = Signal.STRONG_BUY if momentum == "POSITIVE" else Signal.BUY
    elif cross == "BEARISH":
        signal = Signal.STRONG_SELL if momentum == "NEGATIVE" else Signal.SELL
    else:
        signal = Signal.HOLD

    confidence = min(100.0, abs(curr) * 100 + (30 if cross != "NONE" else 0))
    return OscillatorResult(
        value=curr,
        signal=signal,
        confidence=confidence,
        signal_line=curr_sig,
        crossover=cross,
        momentum=momentum,
    )


def compute_awesome_oscillator(
    highs: Sequence[float],
    lows: Sequence[float],
    fast: int = 5,
    slow: int = 34,
) -> OscillatorResult:
    """Awesome Oscillator: SMA(mid, fast) - SMA(mid, slow) with mid = (high + low) / 2.

    ``value`` is in price units. Momentum and crossovers are judged on the
    oscillator as a percentage of the latest mid price.
    """
    fast = validate_period(fast, "AO", name="fast")
    slow = validate_period(slow, "AO", name="slow")
    if fast >= slow:
        raise ValidationError(f"AO: fast ({fast}) must be smaller than slow ({slow})", "fast")

    h = as_series(highs, "AO", "highs")
    low = as_series(lows, "AO", "lows")
    require_same_length("AO", highs=h, lows=low)
    require_length(h, slow + 4, "AO")

    mid = (h + low) / 2
    ao = (_sma(mid, fast) - _sma(mid, slow))[slow - 1 :]
    signal_line = symmetric_weighted(ao)

    scale = 100 / mid[-1] if mid[-1] > 0 else 0.0
    curr = round(float(ao[-1]) * scale, PCT_DECIMALS)
    prev = round(float(ao[-2]) * scale, PCT_DECIMALS)
    curr_sig = round(float(signal_line[-1]) * scale, PCT_DECIMALS)
    prev_sig = round(float(signal_line[-2]) * scale, PCT_DECIMALS)
    cross = crossover(prev, prev_sig, curr, curr_sig)

    if curr > prev:
        momentum = "INCREASING"
    elif curr < prev:
        momentum = "DECREASING"
    else:
        momentum = "STABLE"

    if cross == "BULLISH":
        signal = Signal.STRONG_BUY if curr > 0 else Signal.BUY
    elif cross == "BEARISH":
        signal = Signal.STRONG_SELL if curr < 0 else Signal.SELL
    elif curr > 0 and momentum == "INCREASING":
        signal = Signal.BUY
    elif curr < 0 and momentum == "DECREASING":
        signal = Signal.SELL
    else:
        signal = Signal.HOLD

    confidence = min(100.0, round(abs(curr) * 20, OSC_DECIMALS) + (30 if cross != "NONE" else 0))
    return OscillatorResult(
        value=round(float(ao[-1]), PRICE_DECIMALS),
        signal=signal,
        confidence=confidence,
        signal_line=round(float(signal_line[-1]), PRICE_DECIMALS),
        crossover=cross,
        momentum=momentum,
    )
