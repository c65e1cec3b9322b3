"""Tests for the analysis service (providers mocked)."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from builders import candles_from_closes, snapshot
from signalapp.config import Settings
from signalapp.services import AnalysisService, summarize
from signalcore import analyze
from signalcore.errors import DataNotAvailableError, DataSourceError
from signalcore.models.signal import CrashIndicators, CrashSeverity, CrashSignal, Signal


def flat_window(symbol="BTC"):
    return candles_from_closes([100.0] * 60, symbol=symbol)


def make_service(**overrides):
    prices = AsyncMock()
    prices.get_price_snapshot.side_effect = lambda symbol: snapshot(symbol=symbol, change=0.1, spread=1)
    candles = AsyncMock()
    candles.get_candles.side_effect = lambda symbol, interval, limit: flat_window(symbol)
    settings = Settings(**overrides)
    return AnalysisService(prices, candles, settings), prices, candles


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_fetches_and_analyzes(self):
        service, prices, candles = make_service()
        result = await service.analyze("BTC")

        assert result.symbol == "BTC"
        assert result.overall_signal == Signal.HOLD
        prices.get_price_snapshot.assert_awaited_once_with("BTC")
        candles.get_candles.assert_awaited_once_with("BTC", "1h", 200)

    @pytest.mark.asyncio
    async def test_symbol_is_normalized(self):
        service, prices, _ = make_service()
        result = await service.analyze("btc")
        assert result.symbol == "BTC"
        prices.get_price_snapshot.assert_awaited_once_with("BTC")

    @pytest.mark.asyncio
    async def test_candle_settings_are_passed_through(self):
        service, _, candles = make_service(candle_interval="15m", candle_limit=120)
        await service.analyze("ETH")
        candles.get_candles.assert_awaited_once_with("ETH", "15m", 120)

    @pytest.mark.asyncio
    async def test_candle_failure_propagates(self):
        service, _, candles = make_service()
        candles.get_candles.side_effect = DataSourceError("binance", "HTTP 503")
        with pytest.raises(DataSourceError):
            await service.analyze("BTC")

    @pytest.mark.asyncio
    async def test_slow_provider_times_out(self):
        service, prices, _ = make_service(fetch_timeout=0.01)

        async def slow(symbol):
            await asyncio.sleep(1)
            return snapshot(symbol=symbol)

        prices.get_price_snapshot.side_effect = slow
        with pytest.raises(DataSourceError, match="timed out"):
            await service.analyze("BTC")


class TestCaching:
    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self):
        service, prices, candles = make_service()
        results = await asyncio.gather(*(service.get_cached("BTC") for _ in range(5)))

        assert all(r is results[0] for r in results)
        assert prices.get_price_snapshot.await_count == 1
        assert candles.get_candles.await_count == 1

    @pytest.mark.asyncio
    async def test_data_caches_reused_across_analyses(self):
        service, prices, candles = make_service()
        await service.analyze("BTC")
        await service.analyze("BTC")
        assert prices.get_price_snapshot.await_count == 1
        assert candles.get_candles.await_count == 1

    @pytest.mark.asyncio
    async def test_failed_fetch_is_retried(self):
        service, prices, _ = make_service()
        good = prices.get_price_snapshot.side_effect
        prices.get_price_snapshot.side_effect = DataSourceError("coingecko", "HTTP 500")
        with pytest.raises(DataSourceError):
            await service.get_cached("BTC")

        prices.get_price_snapshot.side_effect = good
        result = await service.get_cached("BTC")
        assert result.symbol == "BTC"


class TestAnalyzeMany:
    @pytest.mark.asyncio
    async def test_failure_is_isolated(self):
        service, prices, _ = make_service()

        def lookup(symbol):
            if symbol == "NOPE":
                raise DataNotAvailableError("coingecko", symbol)
            return snapshot(symbol=symbol, change=0.1, spread=1)

        prices.get_price_snapshot.side_effect = lookup
        result = await service.analyze_many(["BTC", "nope", "ETH"])

        assert set(result.analyses) == {"BTC", "ETH"}
        assert set(result.errors) == {"NOPE"}
        assert isinstance(result.errors["NOPE"], DataNotAvailableError)

    @pytest.mark.asyncio
    async def test_duplicates_analyzed_once(self):
        service, prices, _ = make_service()
        result = await service.analyze_many(["BTC", "btc", "BTC"])
        assert list(result.analyses) == ["BTC"]
        assert prices.get_price_snapshot.await_count == 1

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self):
        service, prices, _ = make_service()
        prices.get_price_snapshot.side_effect = RuntimeError("bug")
        with pytest.raises(RuntimeError):
            await service.analyze_many(["BTC"])


class TestSummarize:
    def test_counts(self):
        base = analyze("BTC", snapshot(change=0.1, spread=1), flat_window()).model_copy(
            update={"risk_score": 20}
        )
        crash = CrashSignal(
            is_crashing=True,
            severity=CrashSeverity.HIGH,
            confidence=75,
            indicators=CrashIndicators(rapid_drop=True, high_volatility=True),
            recommendation="HIGH SEVERITY CRASH",
        )
        analyses = [
            base,
            base.model_copy(update={"overall_signal": Signal.STRONG_BUY}),
            base.model_copy(update={"overall_signal": Signal.STRONG_SELL, "risk_score": 80}),
            base.model_copy(update={"crash_signal": crash, "risk_score": 75}),
        ]
        summary = summarize(analyses, high_risk=70)

        assert summary.total == 4
        assert summary.strong_buy == 1
        assert summary.strong_sell == 1
        assert summary.high_risk == 2
        assert summary.crashing == 1

    def test_empty(self):
        summary = summarize([])
        assert summary.total == 0
        assert summary.crashing == 0

    def test_service_uses_configured_threshold(self):
        service, _, _ = make_service(high_risk=40)
        base = analyze("BTC", snapshot(change=0.1, spread=1), flat_window())
        risky = base.model_copy(update={"risk_score": 50})
        assert service.summarize([risky]).high_risk == 1
        assert summarize([risky]).high_risk == 0
