"""Core signal engine: indicators, regime detection, strategies and detectors.

This package contains pure business logic with no I/O dependencies
(no network, no cache, no clock reads outside model defaults). It is
consumed by the service layer (signalapp/) which fetches market data and
caches the resulting analyses.
"""

from signalcore.analysis import analyze
from signalcore.errors import (
    AnalysisError,
    CalculationError,
    DataNotAvailableError,
    DataSourceError,
    InsufficientDataError,
    InvalidDataError,
    RateLimitError,
    SignalEngineError,
    ValidationError,
)

__all__ = [
    "analyze",
    "SignalEngineError",
    "ValidationError",
    "InsufficientDataError",
    "InvalidDataError",
    "CalculationError",
    "AnalysisError",
    "DataSourceError",
    "RateLimitError",
    "DataNotAvailableError",
]
