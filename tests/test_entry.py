"""Tests for entry signal generation."""

import pytest

from builders import candles_from_closes, geometric, snapshot
from signalcore.detectors import entry_levels, generate_entry_signal
from signalcore.models.config import STOP_PCT, TARGET_PCT, EngineConfig, EntryConfig
from signalcore.models.signal import Direction, EntryStrength, MarketRegime


def accelerating_rally(n=80):
    closes = geometric(100, 0.02, n)
    volumes = [1000.0] * (n - 1) + [3000.0]
    return closes, candles_from_closes(closes, volumes=volumes)


def accelerating_selloff(n=80):
    closes = [30000.0 - 0.01 * i ** 3 for i in range(n)]
    volumes = [1000.0] * (n - 1) + [3000.0]
    return closes, candles_from_closes(closes, volumes=volumes)


class TestEntryLevels:
    def test_long_moderate(self):
        target, stop, target_pct, stop_pct = entry_levels(
            100.0, Direction.LONG, EntryStrength.MODERATE, None, None
        )
        assert target == pytest.approx(110.0)
        assert stop == pytest.approx(98.0)
        assert target_pct == pytest.approx(0.10)
        assert stop_pct == pytest.approx(0.02)

    def test_short_in_bear_market_with_atr_stop(self):
        target, stop, _, stop_pct = entry_levels(
            100.0, Direction.SHORT, EntryStrength.STRONG, MarketRegime.BEAR_MARKET, 3.0
        )
        assert target == pytest.approx(88.0)
        assert stop == pytest.approx(104.5)
        assert stop_pct == pytest.approx(0.045)

    def test_stop_capped_by_strength(self):
        _, _, _, stop_pct = entry_levels(
            100.0, Direction.LONG, EntryStrength.VERY_STRONG, None, 20.0
        )
        assert stop_pct == pytest.approx(0.05)


class TestGenerateEntrySignal:
    def test_no_window(self):
        result = generate_entry_signal(snapshot(change=2))
        assert not result.is_optimal_entry
        assert result.direction == Direction.LONG
        assert result.strength == EntryStrength.WEAK
        assert result.confidence == 0
        assert result.recommendation == "Not optimal entry. Wait for stronger bull signals."

    def test_no_window_falling_price_is_short_bias(self):
        result = generate_entry_signal(snapshot(change=-2))
        assert result.direction == Direction.SHORT
        assert not result.is_optimal_entry

    def test_flat_price_never_optimal(self):
        window = candles_from_closes([100.0] * 60)
        result = generate_entry_signal(snapshot(change=0.1, spread=1), window)
        assert not result.is_optimal_entry

    def test_long_entry(self):
        closes, window = accelerating_rally()
        result = generate_entry_signal(snapshot(price=closes[-1], change=3), window)

        assert result.is_optimal_entry
        assert result.direction == Direction.LONG
        assert result.indicators.volume_increase
        assert result.indicators.momentum_building
        assert result.strength in (EntryStrength.MODERATE, EntryStrength.STRONG)
        assert result.target_price > result.entry_price > result.stop_loss
        assert result.risk_reward >= 1.5
        assert "BULL ENTRY" in result.recommendation

    def test_short_entry(self):
        closes, window = accelerating_selloff()
        result = generate_entry_signal(snapshot(price=closes[-1], change=-5), window)

        assert result.is_optimal_entry
        assert result.direction == Direction.SHORT
        assert result.indicators.momentum_building
        assert result.stop_loss > result.entry_price > result.target_price
        assert "BEAR ENTRY" in result.recommendation

    def test_demoted_below_min_risk_reward(self):
        closes, window = accelerating_rally()
        config = EngineConfig(entry=EntryConfig(min_risk_reward=10))
        result = generate_entry_signal(snapshot(price=closes[-1], change=3), window, config=config)

        assert not result.is_optimal_entry
        assert result.risk_reward < 10
        assert "below the 10.00:1 minimum" in result.recommendation

    def test_regime_scales_target(self):
        closes, window = accelerating_rally()
        snap = snapshot(price=closes[-1], change=3)
        bull = generate_entry_signal(snap, window, MarketRegime.BULL_MARKET)
        bear = generate_entry_signal(snap, window, MarketRegime.BEAR_MARKET)
        assert bull.target_price > bear.target_price


ENTRY_CONFIGS = {
    "defaults": EntryConfig(),
    "demanding": EntryConfig(min_risk_reward=2.5),
    "flat_tables": EntryConfig(
        target_pct=dict.fromkeys(TARGET_PCT, 0.1496),
        stop_pct=dict.fromkeys(STOP_PCT, 0.10),
        min_stop_pct=0.10,
    ),
    "wide_atr_stop": EntryConfig(stop_atr_multiple=4.0, min_stop_pct=0.05),
    "capped_target": EntryConfig(max_target_pct=0.08),
}


def assert_ordered(result, minimum):
    side = int(result.direction)
    reward = side * (result.target_price - result.entry_price)
    risk = side * (result.entry_price - result.stop_loss)
    assert reward > 0
    assert risk > 0
    assert reward / risk >= minimum - 1e-6


class TestOptimalEntryGuarantees:
    @pytest.mark.parametrize("name", list(ENTRY_CONFIGS))
    @pytest.mark.parametrize("regime", [None, *MarketRegime])
    @pytest.mark.parametrize("build,change", [(accelerating_rally, 3), (accelerating_selloff, -5)])
    def test_optimal_entries_honour_ordering_and_ratio(self, name, regime, build, change):
        entry_cfg = ENTRY_CONFIGS[name]
        closes, window = build()
        result = generate_entry_signal(
            snapshot(price=closes[-1], change=change), window, regime, EngineConfig(entry=entry_cfg)
        )
        if result.is_optimal_entry:
            assert_ordered(result, entry_cfg.min_risk_reward)
        else:
            assert result.recommendation.startswith("Not optimal entry.")

    @pytest.mark.parametrize("strength", list(EntryStrength))
    @pytest.mark.parametrize("regime", [None, *MarketRegime])
    @pytest.mark.parametrize("natr", [None, 0.5, 3.0, 20.0])
    @pytest.mark.parametrize("direction", list(Direction))
    def test_levels_always_ordered(self, strength, regime, natr, direction):
        cfg = EntryConfig()
        target, stop, target_pct, stop_pct = entry_levels(100.0, direction, strength, regime, natr)
        side = int(direction)

        assert side * (target - 100.0) > 0
        assert side * (100.0 - stop) > 0
        assert target_pct <= cfg.max_target_pct
        assert cfg.min_stop_pct <= stop_pct <= cfg.stop_pct[strength.value]

    def test_ratio_just_below_minimum_is_demoted(self):
        closes, window = accelerating_rally()
        config = EngineConfig(entry=ENTRY_CONFIGS["flat_tables"])
        result = generate_entry_signal(snapshot(price=closes[-1], change=3), window, config=config)

        assert not result.is_optimal_entry
        assert result.risk_reward == 1.5
        assert "1.496:1 is below the 1.50:1 minimum" in result.recommendation

    def test_ratio_on_minimum_is_optimal(self):
        closes, window = accelerating_rally()
        entry_cfg = EntryConfig(
            target_pct=dict.fromkeys(TARGET_PCT, 0.15),
            stop_pct=dict.fromkeys(STOP_PCT, 0.10),
            min_stop_pct=0.10,
        )
        config = EngineConfig(entry=entry_cfg)
        result = generate_entry_signal(snapshot(price=closes[-1], change=3), window, config=config)

        assert result.is_optimal_entry
        assert result.risk_reward == 1.5
