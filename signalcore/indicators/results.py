"""Typed indicator results.

Every result carries the raw ``value`` in the indicator's own unit plus the
qualitative ``signal`` and ``confidence`` inherited from IndicatorResult.
"""

from signalcore.models.signal import IndicatorResult


class RSIResult(IndicatorResult):
    zone: str = "NEUTRAL"  # OVERSOLD, NEUTRAL, OVERBOUGHT


class MACDResult(IndicatorResult):
    """``value`` is the MACD line."""

    signal_line: float
    histogram: float
    previous_histogram: float | None = None
    histogram_pct: float = 0.0  # Histogram as percent of price, used for classification
    trend: str = "NEUTRAL"  # BULLISH, BEARISH, NEUTRAL

    @property
    def histogram_rising(self) -> bool:
        return self.previous_histogram is not None and self.histogram > self.previous_histogram

    @property
    def histogram_falling(self) -> bool:
        return self.previous_histogram is not None and self.histogram < self.previous_histogram


class BollingerResult(IndicatorResult):
    """``value`` is %B, unclamped (may fall outside [0, 1])."""

    upper: float
    middle: float
    lower: float
    bandwidth: float  # (upper - lower) / middle

    @property
    def percent_b(self) -> float:
        return self.value

    @property
    def display_percent_b(self) -> float:
        """%B clamped to [0, 1] for display only."""
        return min(1.0, max(0.0, self.value))


class ATRResult(IndicatorResult):
    """``value`` is the ATR in price units."""

    normalized_atr: float  # Percent of last close
    volatility_level: str = "MODERATE"  # VERY_LOW, LOW, MODERATE, HIGH, VERY_HIGH


class StochasticResult(IndicatorResult):
    """``value`` is the smoothed %K line."""

    d: float
    zone: str = "NEUTRAL"


class ADXResult(IndicatorResult):
    plus_di: float
    minus_di: float
    trend_strength: str = "WEAK"  # WEAK, EMERGING, STRONG, VERY_STRONG


class OscillatorResult(IndicatorResult):
    """Oscillator compared against its own smoothed signal line (RVI, AO)."""

    signal_line: float
    crossover: str = "NONE"  # BULLISH, BEARISH, NONE
    momentum: str = "NEUTRAL"


class VolumeResult(IndicatorResult):
    """``value`` is last volume / average of prior volumes."""

    roc_pct: float
    average_volume: float


class DonchianResult(IndicatorResult):
    """``value`` is the position of the close inside the channel (0-1)."""

    upper: float
    lower: float
    middle: float


class DivergenceResult(IndicatorResult):
    """``value`` is 1 for bullish, -1 for bearish, 0 for none."""

    divergence_type: str = "NONE"  # BULLISH, BEARISH, NONE

    @property
    def has_divergence(self) -> bool:
        return self.divergence_type != "NONE"
