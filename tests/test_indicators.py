"""Tests for technical indicators."""

import math

import pytest

from builders import geometric, linear
from signalcore.errors import (
    CalculationError,
    InsufficientDataError,
    InvalidDataError,
    ValidationError,
)
from signalcore.indicators import (
    compute_adx,
    compute_atr,
    compute_bollinger,
    compute_donchian,
    compute_historical_volatility,
    compute_macd,
    compute_rsi,
    compute_stochastic,
    compute_volume_profile,
    detect_divergence,
    distance_from_ma,
    ema,
    highest,
    lowest,
    rsi_series,
    sma,
)
from signalcore.models.signal import Signal


class TestValidation:
    def test_nan_rejected(self):
        with pytest.raises(InvalidDataError) as exc:
            sma([1.0, math.nan, 3.0], 2)
        assert exc.value.formula == "SMA"
        assert "indices: 1" in exc.value.issues[0]

    def test_negative_rejected(self):
        with pytest.raises(InvalidDataError):
            compute_rsi([10.0] * 20 + [-1.0])

    def test_infinite_rejected(self):
        with pytest.raises(InvalidDataError):
            ema([1.0, math.inf, 2.0], 2)

    def test_bad_period(self):
        with pytest.raises(ValidationError):
            sma([1.0, 2.0, 3.0], 0)
        with pytest.raises(ValidationError):
            compute_rsi([1.0] * 30, period=True)

    @pytest.mark.parametrize("average", [sma, ema])
    def test_moving_average_period_at_least_two(self, average):
        with pytest.raises(ValidationError) as exc:
            average([1.0, 2.0, 3.0], 1)
        assert exc.value.field == "period"
        assert len(average([1.0, 2.0, 3.0], 2)) == 3

    def test_insufficient_data_reports_counts(self):
        with pytest.raises(InsufficientDataError) as exc:
            compute_rsi([1.0] * 14, 14)
        assert exc.value.required == 15
        assert exc.value.actual == 14


class TestMovingAverages:
    def test_sma_basic(self):
        result = sma(linear(1, 1, 10), 3)
        assert math.isnan(result[0])
        assert math.isnan(result[1])
        assert result[2] == pytest.approx(2.0)
        assert result[3] == pytest.approx(3.0)

    def test_ema_seeded_with_sma(self):
        result = ema(linear(1, 1, 10), 5)
        assert math.isnan(result[3])
        assert result[4] == pytest.approx(3.0)
        # 6 * 1/3 + 3 * 2/3
        assert result[5] == pytest.approx(4.0)

    def test_highest_lowest(self):
        values = [3.0, 1.0, 4.0, 1.0, 5.0]
        assert highest(values, 3)[-1] == 5.0
        assert lowest(values, 3)[-1] == 1.0
        assert highest(values, 1) == values


class TestRSI:
    def test_flat_series_is_neutral(self):
        result = compute_rsi([100.0] * 30)
        assert result.value == 50.0
        assert result.signal == Signal.HOLD
        assert result.zone == "NEUTRAL"

    def test_only_gains_is_overbought(self):
        result = compute_rsi(linear(100, 1, 30))
        assert result.value == 100.0
        assert result.signal == Signal.STRONG_SELL
        assert result.zone == "OVERBOUGHT"
        assert result.confidence == 100.0

    def test_only_losses_is_oversold(self):
        result = compute_rsi(linear(200, -1, 30))
        assert result.value == 0.0
        assert result.signal == Signal.STRONG_BUY
        assert result.zone == "OVERSOLD"

    def test_bounded(self):
        closes = [100 + (7 * i % 11) - 5 for i in range(60)]
        values = [v for v in rsi_series(closes) if not math.isnan(v)]
        assert all(0 <= v <= 100 for v in values)

    def test_shift_invariant(self):
        closes = [100 + (7 * i % 11) for i in range(60)]
        shifted = [c + 1000 for c in closes]
        assert compute_rsi(shifted).value == pytest.approx(compute_rsi(closes).value, abs=1e-9)

    def test_series_warmup(self):
        result = rsi_series(linear(100, 1, 20), 14)
        assert all(math.isnan(v) for v in result[:14])
        assert result[14] == 100.0


class TestMACD:
    def test_fast_must_be_below_slow(self):
        with pytest.raises(ValidationError):
            compute_macd(linear(100, 1, 60), fast=26, slow=12)

    def test_minimum_length(self):
        with pytest.raises(InsufficientDataError):
            compute_macd(linear(100, 1, 33))
        compute_macd(linear(100, 1, 34))

    def test_accelerating_uptrend_is_bullish(self):
        result = compute_macd(geometric(100, 0.02, 80))
        assert result.trend == "BULLISH"
        assert result.signal.is_bullish
        assert result.histogram > 0
        assert result.value > result.signal_line

    def test_accelerating_downtrend_is_bearish(self):
        result = compute_macd([20000.0 - 2 * i * i for i in range(80)])
        assert result.trend == "BEARISH"
        assert result.signal.is_bearish
        assert result.histogram < 0

    def test_flat_series_is_neutral(self):
        result = compute_macd([50.0] * 40)
        assert result.trend == "NEUTRAL"
        assert result.signal == Signal.HOLD
        assert result.histogram == 0
        assert result.previous_histogram == 0
        assert not result.histogram_rising

    def test_previous_histogram_missing_at_minimum_length(self):
        result = compute_macd(linear(100, 1, 34))
        assert result.previous_histogram is None


class TestBollinger:
    def test_collapsed_bands(self):
        result = compute_bollinger([100.0] * 20)
        assert result.value == 0.5
        assert result.bandwidth == 0
        assert result.signal == Signal.HOLD

    def test_close_above_upper_band(self):
        result = compute_bollinger([100.0] * 19 + [120.0])
        assert result.value > 1
        assert result.signal == Signal.STRONG_SELL
        assert result.upper > result.middle > result.lower

    def test_close_below_lower_band(self):
        result = compute_bollinger([100.0] * 19 + [80.0])
        assert result.value < 0
        assert result.signal == Signal.STRONG_BUY

    def test_zero_average(self):
        with pytest.raises(CalculationError):
            compute_bollinger([0.0] * 20)


class TestATR:
    def test_constant_range(self):
        highs, lows, closes = [102.0] * 20, [100.0] * 20, [101.0] * 20
        result = compute_atr(highs, lows, closes, 14)
        assert result.value == pytest.approx(2.0)
        assert result.normalized_atr == pytest.approx(1.98)
        assert result.volatility_level == "LOW"
        assert result.signal == Signal.HOLD

    def test_needs_period_plus_one(self):
        with pytest.raises(InsufficientDataError):
            compute_atr([102.0] * 14, [100.0] * 14, [101.0] * 14, 14)

    def test_mismatched_lengths(self):
        with pytest.raises(ValidationError):
            compute_atr([102.0] * 20, [100.0] * 19, [101.0] * 20)


class TestStochastic:
    def test_close_at_top_of_range(self):
        n = 30
        highs = linear(11, 1, n)
        lows = linear(9, 1, n)
        result = compute_stochastic(highs, lows, highs)
        assert result.value == 100.0
        assert result.zone == "OVERBOUGHT"
        assert result.signal == Signal.SELL

    def test_flat_range_is_neutral(self):
        result = compute_stochastic([10.0] * 30, [10.0] * 30, [10.0] * 30)
        assert result.value == 50.0
        assert result.signal == Signal.HOLD

    def test_minimum_length(self):
        with pytest.raises(InsufficientDataError):
            compute_stochastic([10.0] * 17, [9.0] * 17, [9.5] * 17)


class TestADX:
    def test_steady_uptrend(self):
        n = 40
        closes = linear(20, 1, n)
        highs = [c + 1 for c in closes]
        lows = [c - 1 for c in closes]
        result = compute_adx(highs, lows, closes)
        assert result.plus_di > result.minus_di
        assert result.value == pytest.approx(100.0)
        assert result.trend_strength == "VERY_STRONG"
        assert result.signal == Signal.STRONG_BUY

    def test_needs_two_periods(self):
        with pytest.raises(InsufficientDataError):
            compute_adx([2.0] * 27, [1.0] * 27, [1.5] * 27, 14)


class TestVolumeProfile:
    def test_spike(self):
        result = compute_volume_profile([100.0] * 20 + [300.0])
        assert result.value == pytest.approx(3.0)
        assert result.roc_pct == pytest.approx(200.0)
        assert result.average_volume == pytest.approx(100.0)

    def test_all_zero(self):
        result = compute_volume_profile([0.0] * 10)
        assert result.value == 1.0
        assert result.roc_pct == 0.0

    def test_zero_baseline_capped(self):
        result = compute_volume_profile([0.0] * 10 + [5.0])
        assert result.value == 10.0


class TestDonchian:
    def test_close_at_upper_channel(self):
        highs = linear(11, 1, 25)
        lows = linear(9, 1, 25)
        result = compute_donchian(highs, lows, highs)
        assert result.value == 1.0
        assert result.signal == Signal.BUY
        assert result.middle == pytest.approx((result.upper + result.lower) / 2)


class TestHistoricalVolatility:
    def test_constant_prices(self):
        assert compute_historical_volatility([100.0] * 25).value == 0.0

    def test_zero_price(self):
        with pytest.raises(CalculationError):
            compute_historical_volatility([0.0] + [1.0] * 20)

    def test_more_movement_is_more_volatile(self):
        calm = [100 * (1.001 if i % 2 else 0.999) for i in range(30)]
        wild = [100 * (1.05 if i % 2 else 0.95) for i in range(30)]
        assert compute_historical_volatility(wild).value > compute_historical_volatility(calm).value


class TestDistanceFromMA:
    def test_far_below_average(self):
        result = distance_from_ma([100.0] * 19 + [50.0])
        assert result.value < -10
        assert result.signal == Signal.STRONG_BUY


class TestDivergence:
    @staticmethod
    def _series(price_lows, osc_lows, n=20):
        prices = [100.0] * n
        osc = [50.0] * n
        for index, (price, value) in zip((5, 15), zip(price_lows, osc_lows)):
            prices[index] = price
            osc[index] = value
        return prices, osc

    def test_bullish(self):
        prices, osc = self._series((90.0, 85.0), (30.0, 40.0))
        result = detect_divergence(prices, osc, lookback=20)
        assert result.divergence_type == "BULLISH"
        assert result.value == 1
        assert result.has_divergence

    def test_no_divergence_when_oscillator_confirms(self):
        prices, osc = self._series((90.0, 85.0), (40.0, 30.0))
        result = detect_divergence(prices, osc, lookback=20)
        assert result.divergence_type == "NONE"
        assert result.value == 0

    def test_bearish(self):
        prices = [100.0] * 20
        osc = [50.0] * 20
        prices[5], osc[5] = 110.0, 70.0
        prices[15], osc[15] = 115.0, 60.0
        result = detect_divergence(prices, osc, lookback=20)
        assert result.divergence_type == "BEARISH"
        assert result.value == -1

    def test_oscillator_warming_up(self):
        prices = [100.0] * 20
        osc = [math.nan] * 5 + [50.0] * 15
        with pytest.raises(InsufficientDataError):
            detect_divergence(prices, osc, lookback=20)
