"""Tests for settings and engine.yaml loading."""

import pydantic
import pytest

from builders import candles_from_closes, geometric, snapshot
from signalapp.config import Settings, get_settings
from signalapp.engine_config import load_engine_config
from signalcore import analyze
from signalcore.models.config import (
    CRASH_CONFIDENCE_PENALTY,
    CRASH_RISK_FLOOR,
    STOP_PCT,
    TARGET_PCT,
    CrashConfig,
    EngineConfig,
    EntryConfig,
)


class TestLoadEngineConfig:
    def test_missing_file_returns_defaults(self, tmp_path):
        config = load_engine_config(tmp_path / "nonexistent.yaml")
        assert config == EngineConfig()

    def test_empty_file_returns_defaults(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("")
        assert load_engine_config(path) == EngineConfig()

    def test_partial_overrides(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text(
            "indicators:\n"
            "  rsi_period: 21\n"
            "crash:\n"
            "  rapid_drop_pct: 12\n"
            "entry:\n"
            "  min_risk_reward: 2.0\n"
        )
        config = load_engine_config(str(path))

        assert config.indicators.rsi_period == 21
        assert config.indicators.ma_period == 20
        assert config.crash.rapid_drop_pct == 12
        assert config.crash.volume_spike_ratio == 2
        assert config.entry.min_risk_reward == 2.0
        assert config.regime == EngineConfig().regime

    def test_invalid_value_rejected(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("indicators:\n  rsi_period: 1\n")
        with pytest.raises(pydantic.ValidationError):
            load_engine_config(path)

    def test_inconsistent_periods_rejected(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("indicators:\n  macd_fast: 30\n  macd_slow: 26\n")
        with pytest.raises(pydantic.ValidationError):
            load_engine_config(path)

    def test_partial_keyed_tables_merge(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("crash:\n  risk_floor:\n    HIGH: 80\nscoring:\n  regime_risk:\n    SIDEWAYS: 50\n")
        config = load_engine_config(path)

        assert config.crash.risk_floor == {**CRASH_RISK_FLOOR, "HIGH": 80}
        assert config.crash.confidence_penalty == CRASH_CONFIDENCE_PENALTY
        assert config.scoring.regime_risk["SIDEWAYS"] == 50
        assert config.scoring.regime_risk["BULL_MARKET"] == 25

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "engine.yaml"
        path.write_text("- rsi_period\n- 14\n")
        with pytest.raises(ValueError, match="mapping"):
            load_engine_config(path)


class TestKeyedTables:
    def test_partial_target_override_keeps_other_strengths(self):
        entry = EntryConfig(target_pct={"VERY_STRONG": 0.3})
        assert entry.target_pct == {**TARGET_PCT, "VERY_STRONG": 0.3}
        assert entry.stop_pct == STOP_PCT

    def test_partial_override_still_analyzes(self):
        closes = geometric(100, 0.02, 80)
        window = candles_from_closes(closes, volumes=[1000.0] * 79 + [3000.0])
        config = EngineConfig(
            entry=EntryConfig(target_pct={"VERY_STRONG": 0.3}, stop_pct={"WEAK": 0.2})
        )
        result = analyze("BTC", snapshot(price=closes[-1], change=3), window, config=config)
        assert result.entry_signal.target_price > result.entry_signal.entry_price

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"target_pct": {"HUGE": 0.3}},
            {"regime_target_multiplier": {"MOON": 2.0}},
            {"stop_pct": {"STRONG": 0}},
        ],
    )
    def test_bad_entry_tables_rejected(self, kwargs):
        with pytest.raises(pydantic.ValidationError):
            EntryConfig(**kwargs)

    def test_unknown_severity_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            CrashConfig(risk_floor={"CATASTROPHIC": 99})


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.candle_interval == "1h"
        assert settings.candle_limit == 200
        assert settings.fetch_timeout == 15.0
        assert settings.price_cache_ttl < settings.candle_cache_ttl

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_CANDLE_LIMIT", "500")
        monkeypatch.setenv("SIGNAL_FETCH_TIMEOUT", "2.5")
        monkeypatch.setenv("SIGNAL_SYMBOLS", '["BTC", "DOGE"]')
        settings = Settings()

        assert settings.candle_limit == 500
        assert settings.fetch_timeout == 2.5
        assert settings.symbols == ["BTC", "DOGE"]

    def test_get_settings_is_cached(self, monkeypatch):
        get_settings.cache_clear()
        monkeypatch.setenv("SIGNAL_LOG_LEVEL", "DEBUG")
        try:
            first = get_settings()
            assert first.log_level == "DEBUG"
            assert get_settings() is first
        finally:
            get_settings.cache_clear()
