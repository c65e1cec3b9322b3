"""Technical indicators over closing prices and OHLCV windows.

Two layers:
1. Series primitives (sma, ema, atr_series, ...) returning one value per input
   point, NaN-filled during warmup.
2. compute_* functions returning a typed result for the latest point, with a
   qualitative signal derived from values rounded to fixed precision so
   floating-point noise cannot flip a classification.

All functions validate their input: non-finite or negative values raise
InvalidDataError, too-short series raise InsufficientDataError, bad periods
raise ValidationError.
"""

import math
from typing import Sequence

import numpy as np

from signalcore.errors import CalculationError, InsufficientDataError, ValidationError
from signalcore.indicators.results import (
    ADXResult,
    ATRResult,
    BollingerResult,
    DivergenceResult,
    DonchianResult,
    MACDResult,
    RSIResult,
    StochasticResult,
    VolumeResult,
)
from signalcore.indicators.validation import (
    as_series,
    require_length,
    require_same_length,
    validate_period,
)
from signalcore.models.signal import IndicatorResult, Signal

PRICE_DECIMALS = 6  # Raw price-unit values (MACD line, ATR, bands)
PCT_DECIMALS = 3  # Percentages and ratios used for classification
OSC_DECIMALS = 2  # Bounded oscillators (RSI, stochastic, ADX)


# =============================================================================
# NumPy kernels (arrays in, arrays out, no validation)
# =============================================================================

def _sma(arr: np.ndarray, period: int) -> np.ndarray:
    result = np.full(arr.shape, np.nan)
    for i in range(period - 1, len(arr)):
        result[i] = np.mean(arr[i - period + 1 : i + 1])
    return result


def _ema(arr: np.ndarray, period: int) -> np.ndarray:
    """EMA seeded with the SMA of the first ``period`` values."""
    result = np.full(arr.shape, np.nan)
    if len(arr) < period:
        return result
    multiplier = 2.0 / (period + 1)
    result[period - 1] = np.mean(arr[:period])
    for i in range(period, len(arr)):
        result[i] = arr[i] * multiplier + result[i - 1] * (1 - multiplier)
    return result


def _wilder(arr: np.ndarray, period: int) -> np.ndarray:
    """Wilder's smoothing (RMA), seeded with the mean of the first ``period`` values."""
    result = np.full(arr.shape, np.nan)
    if len(arr) < period:
        return result
    result[period - 1] = np.mean(arr[:period])
    alpha = 1.0 / period
    for i in range(period, len(arr)):
        result[i] = alpha * arr[i] + (1 - alpha) * result[i - 1]
    return result


def _rolling(arr: np.ndarray, period: int, fn) -> np.ndarray:
    result = np.full(arr.shape, np.nan)
    for i in range(period - 1, len(arr)):
        result[i] = fn(arr[i - period + 1 : i + 1])
    return result


def _true_range(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    tr = highs - lows
    if len(tr) > 1:
        prev_close = closes[:-1]
        tr[1:] = np.maximum.reduce(
            [
                highs[1:] - lows[1:],
                np.abs(highs[1:] - prev_close),
                np.abs(lows[1:] - prev_close),
            ]
        )
    return tr


def _rsi(closes: np.ndarray, period: int) -> np.ndarray:
    """Wilder RSI. The first ``period`` entries are NaN."""
    result = np.full(closes.shape, np.nan)
    if len(closes) <= period:
        return result

    deltas = np.diff(closes)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = np.mean(gains[:period])
    avg_loss = np.mean(losses[:period])
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result[i + 1] = _rsi_value(avg_gain, avg_loss)

    return result


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # No movement at all is neutral; only gains is maximally overbought
        return 50.0 if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def _to_list(arr: np.ndarray) -> list[float]:
    return [float(v) for v in arr]


def _ohlc(
    formula: str,
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    h = as_series(highs, formula, "highs")
    low = as_series(lows, formula, "lows")
    c = as_series(closes, formula, "closes")
    require_same_length(formula, highs=h, lows=low, closes=c)
    return h, low, c


# =============================================================================
# Series primitives
# =============================================================================

def sma(values: Sequence[float], period: int) -> list[float]:
    """Simple moving average; first ``period - 1`` entries are NaN."""
    period = validate_period(period, "SMA")
    arr = as_series(values, "SMA")
    require_length(arr, period, "SMA")
    return _to_list(_sma(arr, period))


def ema(values: Sequence[float], period: int) -> list[float]:
    """Exponential moving average seeded with an SMA."""
    period = validate_period(period, "EMA")
    arr = as_series(values, "EMA")
    require_length(arr, period, "EMA")
    return _to_list(_ema(arr, period))


def highest(values: Sequence[float], period: int) -> list[float]:
    period = validate_period(period, "HIGHEST", minimum=1)
    arr = as_series(values, "HIGHEST")
    require_length(arr, period, "HIGHEST")
    return _to_list(_rolling(arr, period, np.max))


def lowest(values: Sequence[float], period: int) -> list[float]:
    period = validate_period(period, "LOWEST", minimum=1)
    arr = as_series(values, "LOWEST")
    require_length(arr, period, "LOWEST")
    return _to_list(_rolling(arr, period, np.min))


def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> list[float]:
    """True Range. The first bar has no previous close and uses high - low."""
    h, low, c = _ohlc("TR", highs, lows, closes)
    return _to_list(_true_range(h, low, c))


def atr_series(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> list[float]:
    """Average True Range using Wilder's smoothing."""
    period = validate_period(period, "ATR")
    h, low, c = _ohlc("ATR", highs, lows, closes)
    require_length(c, period, "ATR")
    return _to_list(_wilder(_true_range(h, low, c), period))


def rsi_series(closes: Sequence[float], period: int = 14) -> list[float]:
    """RSI for every point; the first ``period`` entries are NaN."""
    period = validate_period(period, "RSI")
    arr = as_series(closes, "RSI", "closes")
    require_length(arr, period + 1, "RSI")
    return _to_list(_rsi(arr, period))


# =============================================================================
# Latest-value indicators
# =============================================================================

def compute_rsi(closes: Sequence[float], period: int = 14) -> RSIResult:
    """RSI of the latest close.

    Zones: below 30 OVERSOLD, above 70 OVERBOUGHT. Extremes below 20 / above 80
    produce STRONG signals.
    """
    period = validate_period(period, "RSI")
    arr = as_series(closes, "RSI", "closes")
    require_length(arr, period + 1, "RSI")

    value = round(float(_rsi(arr, period)[-1]), OSC_DECIMALS)

    if value < 20:
        signal = Signal.STRONG_BUY
    elif value < 30:
        signal = Signal.BUY
    elif value > 80:
        signal = Signal.STRONG_SELL
    elif value > 70:
        signal = Signal.SELL
    else:
        signal = Signal.HOLD

    zone = "OVERSOLD" if value < 30 else "OVERBOUGHT" if value > 70 else "NEUTRAL"
    confidence = min(100.0, abs(value - 50) * 2)
    return RSIResult(value=value, signal=signal, confidence=confidence, zone=zone)


def compute_macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """MACD line, signal line and histogram of the latest close.

    Trend is classified on the histogram as a percentage of price so the
    thresholds do not depend on the asset's price scale.
    """
    fast = validate_period(fast, "MACD", name="fast")
    slow = validate_period(slow, "MACD", name="slow")
    signal_period = validate_period(signal_period, "MACD", name="signal")
    if fast >= slow:
        raise ValidationError(f"MACD: fast ({fast}) must be smaller than slow ({slow})", "fast")

    arr = as_series(closes, "MACD", "closes")
    require_length(arr, slow + signal_period - 1, "MACD")

    macd_line = (_ema(arr, fast) - _ema(arr, slow))[slow - 1 :]
    signal_line = _ema(macd_line, signal_period)
    histogram = (macd_line - signal_line)[signal_period - 1 :]

    last_close = arr[-1]
    hist = float(histogram[-1])
    prev_hist = float(histogram[-2]) if len(histogram) > 1 else None
    hist_pct = round(hist / last_close * 100, PCT_DECIMALS) if last_close > 0 else 0.0
    macd_pct = round(float(macd_line[-1]) / last_close * 100, PCT_DECIMALS) if last_close > 0 else 0.0

    if hist_pct > 0:
        trend = "BULLISH"
        strong = macd_pct > 0 and prev_hist is not None and hist > prev_hist
        signal = Signal.STRONG_BUY if strong else Signal.BUY
    elif hist_pct < 0:
        trend = "BEARISH"
        strong = macd_pct < 0 and prev_hist is not None and hist < prev_hist
        signal = Signal.STRONG_SELL if strong else Signal.SELL
    else:
        trend = "NEUTRAL"
        signal = Signal.HOLD

    # A histogram of 1% of price is treated as a full-confidence reading
    confidence = min(100.0, abs(hist_pct) * 100)

    return MACDResult(
        value=round(float(macd_line[-1]), PRICE_DECIMALS),
        signal=signal,
        confidence=confidence,
        signal_line=round(float(signal_line[-1]), PRICE_DECIMALS),
        histogram=round(hist, PRICE_DECIMALS),
        previous_histogram=round(prev_hist, PRICE_DECIMALS) if prev_hist is not None else None,
        histogram_pct=hist_pct,
        trend=trend,
    )


def compute_bollinger(
    closes: Sequence[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerResult:
    """Bollinger Bands and %B of the latest close.

    %B is returned unclamped: below 0 means the close is under the lower band.
    Collapsed bands (zero deviation) give %B = 0.5.
    """
    period = validate_period(period, "BOLLINGER")
    arr = as_series(closes, "BOLLINGER", "closes")
    require_length(arr, period, "BOLLINGER")

    window = arr[-period:]
    middle = float(np.mean(window))
    deviation = float(np.std(window))  # Population std, as in the classic definition
    upper = middle + std_dev * deviation
    lower = middle - std_dev * deviation

    if middle <= 0:
        raise CalculationError("BOLLINGER: moving average is zero, bandwidth undefined")

    width = upper - lower
    percent_b = 0.5 if width == 0 else (float(arr[-1]) - lower) / width
    percent_b = round(percent_b, PCT_DECIMALS)
    bandwidth = round(width / middle, PCT_DECIMALS + 1)

    if percent_b < 0:
        signal = Signal.STRONG_BUY
    elif percent_b < 0.2:
        signal = Signal.BUY
    elif percent_b > 1:
        signal = Signal.STRONG_SELL
    elif percent_b > 0.8:
        signal = Signal.SELL
    else:
        signal = Signal.HOLD

    return BollingerResult(
        value=percent_b,
        signal=signal,
        confidence=min(100.0, abs(percent_b - 0.5) * 200),
        upper=round(upper, PRICE_DECIMALS),
        middle=round(middle, PRICE_DECIMALS),
        lower=round(lower, PRICE_DECIMALS),
        bandwidth=bandwidth,
    )


def compute_atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> ATRResult:
    """ATR of the latest bar plus ATR as a percentage of the close (NATR)."""
    period = validate_period(period, "ATR")
    h, low, c = _ohlc("ATR", highs, lows, closes)
    require_length(c, period + 1, "ATR")

    atr = float(_wilder(_true_range(h, low, c), period)[-1])
    last_close = float(c[-1])
    if last_close <= 0:
        raise CalculationError("ATR: last close is zero, normalized ATR undefined")
    natr = round(atr / last_close * 100, OSC_DECIMALS)

    if natr < 1:
        level = "VERY_LOW"
    elif natr < 2:
        level = "LOW"
    elif natr < 4:
        level = "MODERATE"
    elif natr < 6:
        level = "HIGH"
    else:
        level = "VERY_HIGH"

    # Volatility is non-directional; confidence expresses how pronounced it is
    return ATRResult(
        value=round(atr, PRICE_DECIMALS),
        signal=Signal.HOLD,
        confidence=min(100.0, natr * 10),
        normalized_atr=natr,
        volatility_level=level,
    )


def compute_stochastic(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    k_period: int = 14,
    smooth: int = 3,
    d_period: int = 3,
) -> StochasticResult:
    """Slow stochastic oscillator (%K smoothed, %D = SMA of %K)."""
    k_period = validate_period(k_period, "STOCHASTIC", name="k_period")
    smooth = validate_period(smooth, "STOCHASTIC", minimum=1, name="smooth")
    d_period = validate_period(d_period, "STOCHASTIC", minimum=1, name="d_period")
    h, low, c = _ohlc("STOCHASTIC", highs, lows, closes)
    require_length(c, k_period + smooth + d_period - 2, "STOCHASTIC")

    hh = _rolling(h, k_period, np.max)[k_period - 1 :]
    ll = _rolling(low, k_period, np.min)[k_period - 1 :]
    span = hh - ll
    raw_k = np.where(span == 0, 50.0, (c[k_period - 1 :] - ll) / np.where(span == 0, 1.0, span) * 100)

    k_line = _sma(raw_k, smooth)[smooth - 1 :]
    d_line = _sma(k_line, d_period)

    k = round(float(k_line[-1]), OSC_DECIMALS)
    d = round(float(d_line[-1]), OSC_DECIMALS)

    if k < 20:
        signal = Signal.STRONG_BUY if k > d else Signal.BUY
        zone = "OVERSOLD"
    elif k > 80:
        signal = Signal.STRONG_SELL if k < d else Signal.SELL
        zone = "OVERBOUGHT"
    else:
        signal = Signal.HOLD
        zone = "NEUTRAL"

    return StochasticResult(
        value=k,
        signal=signal,
        confidence=min(100.0, abs(k - 50) * 2),
        d=d,
        zone=zone,
    )


def compute_adx(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> ADXResult:
    """Average Directional Index with +DI/-DI.

    Needs 2 * period bars: period bars to seed the smoothed directional
    movement, another period DX values to seed the ADX.
    """
    period = validate_period(period, "ADX")
    h, low, c = _ohlc("ADX", highs, lows, closes)
    require_length(c, 2 * period, "ADX")

    up = h[1:] - h[:-1]
    down = low[:-1] - low[1:]
    plus_dm = np.where((up > down) & (up > 0), up, 0.0)
    minus_dm = np.where((down > up) & (down > 0), down, 0.0)
    tr = _true_range(h, low, c)[1:]

    s_tr = float(np.sum(tr[:period]))
    s_plus = float(np.sum(plus_dm[:period]))
    s_minus = float(np.sum(minus_dm[:period]))

    dx_values = []
    plus_di = minus_di = 0.0
    for i in range(period - 1, len(tr)):
        if i >= period:
            s_tr = s_tr - s_tr / period + tr[i]
            s_plus = s_plus - s_plus / period + plus_dm[i]
            s_minus = s_minus - s_minus / period + minus_dm[i]
        plus_di = 100 * s_plus / s_tr if s_tr > 0 else 0.0
        minus_di = 100 * s_minus / s_tr if s_tr > 0 else 0.0
        di_sum = plus_di + minus_di
        dx_values.append(100 * abs(plus_di - minus_di) / di_sum if di_sum > 0 else 0.0)

    adx = float(np.mean(dx_values[:period]))
    for dx in dx_values[period:]:
        adx = (adx * (period - 1) + dx) / period

    adx = round(adx, OSC_DECIMALS)
    plus_di = round(plus_di, OSC_DECIMALS)
    minus_di = round(minus_di, OSC_DECIMALS)

    if adx < 20:
        strength = "WEAK"
    elif adx < 25:
        strength = "EMERGING"
    elif adx < 40:
        strength = "STRONG"
    else:
        strength = "VERY_STRONG"

    if adx < 20 or plus_di == minus_di:
        signal = Signal.HOLD
    elif plus_di > minus_di:
        signal = Signal.STRONG_BUY if adx >= 40 else Signal.BUY
    else:
        signal = Signal.STRONG_SELL if adx >= 40 else Signal.SELL

    return ADXResult(
        value=adx,
        signal=signal,
        confidence=min(100.0, adx * 2),
        plus_di=plus_di,
        minus_di=minus_di,
        trend_strength=strength,
    )


def compute_volume_profile(volumes: Sequence[float], period: int = 20) -> VolumeResult:
    """Latest volume relative to the average of up to ``period`` prior bars.

    The ratio is capped at 10x. A zero baseline gives ratio 1.0 when the latest
    volume is also zero, otherwise the cap.
    """
    period = validate_period(period, "VOLUME", minimum=1)
    arr = as_series(volumes, "VOLUME", "volumes")
    require_length(arr, 2, "VOLUME")

    prior = arr[-(period + 1) : -1]
    average = float(np.mean(prior))
    last = float(arr[-1])
    if average > 0:
        ratio = min(10.0, last / average)
    else:
        ratio = 1.0 if last == 0 else 10.0

    ratio = round(ratio, PCT_DECIMALS)
    roc = round((ratio - 1) * 100, OSC_DECIMALS)
    return VolumeResult(
        value=ratio,
        signal=Signal.HOLD,
        confidence=min(100.0, abs(roc)),
        roc_pct=roc,
        average_volume=round(average, PRICE_DECIMALS),
    )


def compute_donchian(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 20,
) -> DonchianResult:
    """Donchian channel over the last ``period`` bars and the close's position in it."""
    period = validate_period(period, "DONCHIAN")
    h, low, c = _ohlc("DONCHIAN", highs, lows, closes)
    require_length(c, period, "DONCHIAN")

    upper = float(np.max(h[-period:]))
    lower = float(np.min(low[-period:]))
    width = upper - lower
    position = 0.5 if width == 0 else (float(c[-1]) - lower) / width
    position = round(position, PCT_DECIMALS)

    if position > 0.8:
        signal = Signal.BUY
    elif position < 0.2:
        signal = Signal.SELL
    else:
        signal = Signal.HOLD

    return DonchianResult(
        value=position,
        signal=signal,
        confidence=min(100.0, abs(position - 0.5) * 200),
        upper=round(upper, PRICE_DECIMALS),
        lower=round(lower, PRICE_DECIMALS),
        middle=round((upper + lower) / 2, PRICE_DECIMALS),
    )


def compute_historical_volatility(
    closes: Sequence[float],
    period: int = 20,
    periods_per_year: int = 365,
) -> IndicatorResult:
    """Annualized standard deviation of log returns, in percent."""
    period = validate_period(period, "HV")
    arr = as_series(closes, "HV", "closes")
    require_length(arr, period + 1, "HV")

    window = arr[-(period + 1) :]
    if np.any(window <= 0):
        raise CalculationError("HV: log returns undefined for non-positive prices")

    returns = np.diff(np.log(window))
    hv = float(np.std(returns, ddof=1)) * math.sqrt(periods_per_year) * 100
    hv = round(hv, OSC_DECIMALS)
    return IndicatorResult(value=hv, signal=Signal.HOLD, confidence=min(100.0, hv))


def distance_from_ma(closes: Sequence[float], period: int = 20) -> IndicatorResult:
    """Percent distance of the latest close from its SMA (positive = above)."""
    period = validate_period(period, "MA_DISTANCE")
    arr = as_series(closes, "MA_DISTANCE", "closes")
    require_length(arr, period, "MA_DISTANCE")

    ma = float(np.mean(arr[-period:]))
    if ma <= 0:
        raise CalculationError("MA_DISTANCE: moving average is zero")
    distance = round((float(arr[-1]) - ma) / ma * 100, OSC_DECIMALS)

    if distance <= -10:
        signal = Signal.STRONG_BUY
    elif distance <= -5:
        signal = Signal.BUY
    elif distance >= 10:
        signal = Signal.STRONG_SELL
    elif distance >= 5:
        signal = Signal.SELL
    else:
        signal = Signal.HOLD

    return IndicatorResult(value=distance, signal=signal, confidence=min(100.0, abs(distance) * 5))


def detect_divergence(
    closes: Sequence[float],
    oscillator: Sequence[float],
    lookback: int = 20,
) -> DivergenceResult:
    """Compare price and oscillator extremes in the two halves of a lookback window.

    Bullish: price makes a lower low while the oscillator makes a higher low.
    Bearish: price makes a higher high while the oscillator makes a lower high.
    When both appear, the one whose second extreme is more recent wins.
    """
    lookback = validate_period(lookback, "DIVERGENCE", minimum=4, name="lookback")
    prices = as_series(closes, "DIVERGENCE", "closes")
    osc = np.asarray(oscillator, dtype=np.float64)
    require_same_length("DIVERGENCE", closes=prices, oscillator=osc)
    require_length(prices, lookback, "DIVERGENCE")

    prices = prices[-lookback:]
    osc = osc[-lookback:]
    finite = int(np.isfinite(osc).sum())
    if finite < lookback:
        # Oscillator still warming up inside the window
        raise InsufficientDataError("DIVERGENCE", lookback, finite)
    osc = np.round(osc, OSC_DECIMALS)

    half = lookback // 2
    first_p, second_p = prices[:half], prices[half:]
    first_o, second_o = osc[:half], osc[half:]

    lo1, lo2 = int(np.argmin(first_p)), int(np.argmin(second_p))
    bullish = second_p[lo2] < first_p[lo1] and second_o[lo2] > first_o[lo1]

    hi1, hi2 = int(np.argmax(first_p)), int(np.argmax(second_p))
    bearish = second_p[hi2] > first_p[hi1] and second_o[hi2] < first_o[hi1]

    if bullish and bearish:
        bullish, bearish = (lo2 >= hi2), (hi2 > lo2)

    if bullish:
        return DivergenceResult(value=1, signal=Signal.BUY, confidence=60, divergence_type="BULLISH")
    if bearish:
        return DivergenceResult(value=-1, signal=Signal.SELL, confidence=60, divergence_type="BEARISH")
    return DivergenceResult(value=0, signal=Signal.HOLD, confidence=0, divergence_type="NONE")
