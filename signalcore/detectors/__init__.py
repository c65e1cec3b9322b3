"""Crash and entry detectors (total functions, never raise)."""

from signalcore.detectors.crash import (
    crash_confidence,
    crash_recommendation,
    crash_severity,
    detect_crash,
)
from signalcore.detectors.entry import entry_levels, entry_recommendation, generate_entry_signal

__all__ = [
    "detect_crash",
    "crash_severity",
    "crash_confidence",
    "crash_recommendation",
    "generate_entry_signal",
    "entry_levels",
    "entry_recommendation",
]
