"""End-to-end tests for the per-asset analysis orchestrator."""

import orjson
import pytest

from builders import candles_from_closes, pattern, snapshot
from signalcore import AnalysisError, analyze
from signalcore.analysis import ACTIONS, build_recommendation, combine
from signalcore.models.market import CandleWindow
from signalcore.models.signal import (
    CrashIndicators,
    CrashSeverity,
    CrashSignal,
    Direction,
    EntryIndicators,
    EntrySignal,
    EntryStrength,
    MarketRegime,
    Signal,
    StrategyResult,
    StrategySignal,
)

RALLY = [1.5, 1.5, 1.5, -1]
SELLOFF = [-1.5, -1.5, -1.5, 1]


def strategy_result(signal=Signal.BUY, confidence=70, risk=40, regime=MarketRegime.TRENDING):
    primary = StrategySignal(strategy="momentum", signal=signal, confidence=confidence, reasoning="test")
    return StrategyResult(
        regime=regime,
        signals=(primary,),
        primary_signal=primary,
        overall_confidence=confidence,
        risk_score=risk,
        agreement=1.0,
    )


def crash_signal(severity=CrashSeverity.HIGH, crashing=True):
    return CrashSignal(
        is_crashing=crashing,
        severity=severity,
        confidence=75,
        indicators=CrashIndicators(rapid_drop=True, volume_spike=True, high_volatility=True),
        recommendation="HIGH SEVERITY CRASH: Significant selling pressure.",
    )


NO_CRASH = CrashSignal(
    is_crashing=False,
    severity=CrashSeverity.LOW,
    confidence=0,
    indicators=CrashIndicators(),
    recommendation="No crash detected. Normal market conditions.",
)


def entry_signal(direction=Direction.LONG, strength=EntryStrength.STRONG, optimal=True, confidence=85):
    side = int(direction)
    return EntrySignal(
        is_optimal_entry=optimal,
        direction=direction,
        strength=strength,
        confidence=confidence,
        indicators=EntryIndicators(trend_reversal=True, volume_increase=True, momentum_building=True),
        entry_price=100.0,
        target_price=100.0 * (1 + side * 0.15),
        stop_loss=100.0 * (1 - side * 0.05),
        risk_reward=3.0,
        recommendation="STRONG BULL ENTRY: Good setup with confirmation.",
    )


class TestScenarios:
    def test_a_strong_rally(self):
        closes = pattern(100, RALLY, 81)
        window = candles_from_closes(closes, wick_pct=4)
        result = analyze("BTC", snapshot(price=closes[-1], change=15, spread=20), window)

        assert result.regime in (MarketRegime.BULL_MARKET, MarketRegime.HIGH_VOLATILITY)
        assert result.overall_signal.is_bullish
        assert result.risk_score > 50
        assert not result.crash_signal.is_crashing
        assert result.recommendation.startswith(f"Market Regime: {result.regime.value}")
        assert result.recommendation.endswith(ACTIONS[result.overall_signal])

    def test_b_crash_overrides_bullish_view(self):
        closes = pattern(100, SELLOFF, 81)
        volumes = [1000.0] * 80 + [3000.0]
        window = candles_from_closes(closes, wick_pct=4, volumes=volumes)
        result = analyze("BTC", snapshot(price=closes[-1], change=-15, spread=20), window)

        assert result.crash_signal.is_crashing
        assert result.crash_signal.severity in (CrashSeverity.HIGH, CrashSeverity.EXTREME)
        assert not result.overall_signal.is_bullish
        assert result.risk_score >= 75

    def test_c_flat_market(self):
        window = candles_from_closes([100.0] * 60)
        result = analyze("BTC", snapshot(change=0.1, spread=1), window)

        assert result.regime in (
            MarketRegime.SIDEWAYS,
            MarketRegime.LOW_VOLATILITY,
            MarketRegime.MEAN_REVERSION,
        )
        assert not result.entry_signal.is_optimal_entry
        assert result.overall_signal == Signal.HOLD


class TestValidation:
    def test_symbol_mismatch(self):
        with pytest.raises(AnalysisError) as exc:
            analyze("ETH", snapshot(symbol="BTC"), candles_from_closes([100.0] * 60))
        assert exc.value.symbol == "ETH"

    def test_non_positive_price(self):
        with pytest.raises(AnalysisError):
            analyze("BTC", snapshot(price=0.0, spread=None))

    def test_window_for_another_symbol(self):
        window = candles_from_closes([100.0] * 60, symbol="ETH")
        with pytest.raises(AnalysisError):
            analyze("BTC", snapshot(), window)

    def test_no_candles_means_no_strategies(self):
        with pytest.raises(AnalysisError, match="No strategies executed"):
            analyze("BTC", snapshot(), CandleWindow(symbol="BTC"))


class TestCombine:
    def test_crash_turns_buy_into_hold(self):
        signal, confidence, risk = combine(strategy_result(Signal.BUY, 80, 40), crash_signal(), entry_signal())
        assert signal == Signal.HOLD
        assert confidence == 52
        assert risk == 75

    def test_crash_keeps_bearish_signal(self):
        signal, _, _ = combine(strategy_result(Signal.SELL), crash_signal(CrashSeverity.EXTREME), entry_signal())
        assert signal == Signal.SELL

    def test_strong_long_entry_upgrades_buy(self):
        signal, confidence, risk = combine(strategy_result(Signal.BUY, 70, 40), NO_CRASH, entry_signal())
        assert signal == Signal.STRONG_BUY
        assert confidence == 85
        assert risk == 40

    def test_strong_short_entry_upgrades_sell(self):
        signal, _, _ = combine(
            strategy_result(Signal.SELL), NO_CRASH, entry_signal(Direction.SHORT)
        )
        assert signal == Signal.STRONG_SELL

    def test_moderate_entry_does_not_upgrade(self):
        signal, confidence, _ = combine(
            strategy_result(Signal.BUY, 70), NO_CRASH, entry_signal(strength=EntryStrength.MODERATE)
        )
        assert signal == Signal.BUY
        assert confidence == 70

    def test_opposite_entry_leaves_signal(self):
        signal, confidence, _ = combine(strategy_result(Signal.SELL, 60), NO_CRASH, entry_signal())
        assert signal == Signal.SELL
        assert confidence == 60


class TestRecommendation:
    def test_parts_in_order(self):
        text = build_recommendation(Signal.HOLD, strategy_result(), crash_signal(), entry_signal())
        assert text.startswith("Market Regime: TRENDING. HIGH SEVERITY CRASH")
        assert "STRONG BULL ENTRY" in text
        assert text.endswith(ACTIONS[Signal.HOLD])

    def test_serializes_to_json(self):
        window = candles_from_closes([100.0] * 60)
        result = analyze("BTC", snapshot(change=0.1, spread=1), window)
        data = orjson.loads(result.to_json())
        assert data["symbol"] == "BTC"
        assert data["overall_signal"] == "HOLD"
        assert data["strategy_result"]["primary_signal"]["metrics"]["kind"] == "breakout"
