"""Tests for RVI and Awesome Oscillator."""

import numpy as np
import pytest

from signalcore.errors import InsufficientDataError, ValidationError
from signalcore.indicators import (
    compute_awesome_oscillator,
    compute_rvi,
    crossover,
    symmetric_weighted,
)
from signalcore.models.signal import Signal


def flat_bars(n, price=100.0):
    """Doji bars: open == close with a 2-point range."""
    return [price] * n, [price + 1] * n, [price - 1] * n, [price] * n


class TestKernel:
    def test_constant_input(self):
        result = symmetric_weighted(np.array([1.0] * 5))
        assert list(result) == [1.0, 1.0]

    def test_weights(self):
        result = symmetric_weighted(np.array([0.0, 0.0, 0.0, 6.0]))
        assert result[0] == pytest.approx(1.0)

    def test_too_short(self):
        assert len(symmetric_weighted(np.array([1.0, 2.0]))) == 0


class TestCrossover:
    def test_bullish(self):
        assert crossover(0.0, 0.0, 0.2, 0.1) == "BULLISH"

    def test_bearish(self):
        assert crossover(0.1, 0.0, -0.1, 0.0) == "BEARISH"

    def test_none(self):
        assert crossover(0.2, 0.1, 0.3, 0.1) == "NONE"


class TestRVI:
    def test_minimum_length(self):
        opens, highs, lows, closes = flat_bars(16)
        with pytest.raises(InsufficientDataError):
            compute_rvi(opens, highs, lows, closes, period=10)

    def test_steady_bullish_bars(self):
        n = 30
        opens = [100.0] * n
        closes = [101.0] * n
        highs = [101.5] * n
        lows = [99.5] * n
        result = compute_rvi(opens, highs, lows, closes)
        assert result.value == 0.5
        assert result.momentum == "POSITIVE"
        assert result.crossover == "NONE"
        assert result.signal == Signal.HOLD

    def test_zero_range_is_neutral(self):
        result = compute_rvi([100.0] * 20, [100.0] * 20, [100.0] * 20, [100.0] * 20)
        assert result.value == 0.0
        assert result.momentum == "NEUTRAL"

    def test_crossover_on_breakout_bar(self):
        opens, highs, lows, closes = flat_bars(30)
        highs[-1], lows[-1], closes[-1] = 102.5, 99.5, 102.0
        result = compute_rvi(opens, highs, lows, closes)
        assert result.crossover == "BULLISH"
        assert result.signal == Signal.BUY
        assert result.value > result.signal_line


class TestAwesomeOscillator:
    def test_fast_must_be_below_slow(self):
        with pytest.raises(ValidationError):
            compute_awesome_oscillator([10.0] * 50, [9.0] * 50, fast=34, slow=5)

    def test_minimum_length(self):
        with pytest.raises(InsufficientDataError):
            compute_awesome_oscillator([10.0] * 37, [9.0] * 37)

    def test_flat_market(self):
        result = compute_awesome_oscillator([101.0] * 40, [99.0] * 40)
        assert result.value == 0.0
        assert result.momentum == "STABLE"
        assert result.crossover == "NONE"
        assert result.signal == Signal.HOLD

    def test_jump_up_crosses_signal_line(self):
        highs = [100.0] * 40 + [110.0]
        lows = [100.0] * 40 + [110.0]
        result = compute_awesome_oscillator(highs, lows)
        assert result.value > 0
        assert result.crossover == "BULLISH"
        assert result.momentum == "INCREASING"
        assert result.signal == Signal.STRONG_BUY

    def test_jump_down_crosses_signal_line(self):
        highs = [100.0] * 40 + [90.0]
        lows = [100.0] * 40 + [90.0]
        result = compute_awesome_oscillator(highs, lows)
        assert result.value < 0
        assert result.crossover == "BEARISH"
        assert result.signal == Signal.STRONG_SELL
