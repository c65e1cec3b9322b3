"""Error taxonomy for the signal engine.

Computation errors (validation, insufficient/invalid data, calculation) are
raised by the indicator library and caught at the strategy executor boundary.
Provider errors (data source, rate limit, not available) are raised by the
upstream clients so callers can tell "no data" apart from "bad data".
"""

from __future__ import annotations


class SignalEngineError(Exception):
    """Base class for every error raised by the engine."""


class ValidationError(SignalEngineError):
    """A parameter is malformed or out of range."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class InsufficientDataError(SignalEngineError):
    """Input window is shorter than the formula's minimum."""

    def __init__(self, formula: str, required: int, actual: int):
        super().__init__(
            f"{formula}: requires at least {required} data points, got {actual}"
        )
        self.formula = formula
        self.required = required
        self.actual = actual


class InvalidDataError(SignalEngineError):
    """Input series contains non-finite or negative values."""

    def __init__(self, formula: str, issues: list[str]):
        super().__init__(f"{formula}: " + "; ".join(issues))
        self.formula = formula
        self.issues = list(issues)


class CalculationError(SignalEngineError):
    """A calculation could not be completed (e.g. unguarded division by zero)."""


class AnalysisError(SignalEngineError):
    """Orchestration-level failure, optionally scoped to a symbol."""

    def __init__(self, message: str, symbol: str | None = None):
        super().__init__(f"{symbol}: {message}" if symbol else message)
        self.symbol = symbol


class DataSourceError(SignalEngineError):
    """Upstream provider failed (network error, bad status, bad payload)."""

    def __init__(self, provider: str, message: str, status: int | None = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status = status


class RateLimitError(DataSourceError):
    """Upstream provider rejected the request because of rate limiting."""

    def __init__(self, provider: str, retry_after: float | None = None):
        super().__init__(provider, "rate limit exceeded", status=429)
        self.retry_after = retry_after


class DataNotAvailableError(DataSourceError):
    """Upstream provider has no data for the requested symbol."""

    def __init__(self, provider: str, symbol: str):
        super().__init__(provider, f"no data available for {symbol}", status=404)
        self.symbol = symbol
