"""Technical indicators (pure math, no I/O)."""

from signalcore.indicators.indicators import (
    sma,
    ema,
    highest,
    lowest,
    true_range,
    atr_series,
    rsi_series,
    compute_rsi,
    compute_macd,
    compute_bollinger,
    compute_atr,
    compute_stochastic,
    compute_adx,
    compute_volume_profile,
    compute_donchian,
    compute_historical_volatility,
    distance_from_ma,
    detect_divergence,
)
from signalcore.indicators.oscillators import (
    compute_awesome_oscillator,
    compute_rvi,
    crossover,
    symmetric_weighted,
)
from signalcore.indicators.results import (
    ADXResult,
    ATRResult,
    BollingerResult,
    DivergenceResult,
    DonchianResult,
    MACDResult,
    OscillatorResult,
    RSIResult,
    StochasticResult,
    VolumeResult,
)

__all__ = [
    "sma",
    "ema",
    "highest",
    "lowest",
    "true_range",
    "atr_series",
    "rsi_series",
    "compute_rsi",
    "compute_macd",
    "compute_bollinger",
    "compute_atr",
    "compute_stochastic",
    "compute_adx",
    "compute_rvi",
    "compute_awesome_oscillator",
    "compute_volume_profile",
    "compute_donchian",
    "compute_historical_volatility",
    "distance_from_ma",
    "detect_divergence",
    "crossover",
    "symmetric_weighted",
    "RSIResult",
    "MACDResult",
    "BollingerResult",
    "ATRResult",
    "StochasticResult",
    "ADXResult",
    "OscillatorResult",
    "VolumeResult",
    "DonchianResult",
    "DivergenceResult",
]
