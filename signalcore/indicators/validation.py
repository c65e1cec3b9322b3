"""Input validation shared by all indicator functions."""

from typing import Sequence

import numpy as np

from signalcore.errors import InsufficientDataError, InvalidDataError, ValidationError


def as_series(
    values: Sequence[float],
    formula: str,
    name: str = "values",
    non_negative: bool = True,
) -> np.ndarray:
    """Convert a sequence to a float64 array, rejecting non-finite or negative values.

    Raises:
        InvalidDataError: If the series is not numeric, contains NaN/inf,
            or contains negative values when ``non_negative`` is set.
    """
    try:
        arr = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidDataError(formula, [f"{name} must be numeric ({e})"]) from e

    if arr.ndim != 1:
        raise InvalidDataError(formula, [f"{name} must be one-dimensional"])

    issues = []
    bad = np.flatnonzero(~np.isfinite(arr))
    if bad.size:
        issues.append(f"{name} contains non-finite values at indices: {_fmt(bad)}")
    if non_negative:
        negative = np.flatnonzero(arr < 0)
        if negative.size:
            issues.append(f"{name} must be non-negative at indices: {_fmt(negative)}")

    if issues:
        raise InvalidDataError(formula, issues)
    return arr


def require_length(arr: np.ndarray | Sequence[float], required: int, formula: str) -> None:
    """Raise InsufficientDataError if fewer than ``required`` points are available."""
    if len(arr) < required:
        raise InsufficientDataError(formula, required, len(arr))


def validate_period(period: int, formula: str, minimum: int = 2, name: str = "period") -> int:
    """Check that a period parameter is an integer >= minimum."""
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)):
        raise ValidationError(f"{formula}: {name} must be an integer, got {period!r}", name)
    if period < minimum:
        raise ValidationError(f"{formula}: {name} must be >= {minimum}, got {period}", name)
    return int(period)


def require_same_length(formula: str, **arrays: np.ndarray) -> None:
    """Check that all named arrays have the same length."""
    lengths = {name: len(arr) for name, arr in arrays.items()}
    if len(set(lengths.values())) > 1:
        detail = ", ".join(f"{name}={n}" for name, n in lengths.items())
        raise ValidationError(f"{formula}: input lengths differ ({detail})")


def _fmt(indices: np.ndarray, limit: int = 10) -> str:
    shown = ", ".join(str(int(i)) for i in indices[:limit])
    return shown + (" ..." if indices.size > limit else "")
