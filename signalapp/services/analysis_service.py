"""Analysis service: fetches market data through caches and runs the engine."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from signalapp.clients.binance_rest import BinanceRestClient
from signalapp.clients.coingecko_rest import CoinGeckoClient
from signalapp.clients.protocol import CandleProvider, PriceSnapshotProvider
from signalapp.config import Settings
from signalapp.storage.cache import SingleFlightCache
from signalcore.analysis import analyze
from signalcore.errors import DataSourceError, SignalEngineError
from signalcore.models.config import EngineConfig
from signalcore.models.market import CandleWindow, PriceSnapshot
from signalcore.models.signal import AssetAnalysis, Signal
from signalcore.strategy import StrategyExecutor

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of analyzing several symbols; failures never hide successes."""

    analyses: dict[str, AssetAnalysis] = field(default_factory=dict)
    errors: dict[str, SignalEngineError] = field(default_factory=dict)


@dataclass(frozen=True)
class MarketSummary:
    total: int
    strong_buy: int
    strong_sell: int
    high_risk: int
    crashing: int


class AnalysisService:
    """Runs per-asset analysis on top of the price and candle providers.

    Caches may be injected; by default each data category gets its own
    cache with the TTL and capacity from settings.
    """

    def __init__(
        self,
        price_provider: PriceSnapshotProvider,
        candle_provider: CandleProvider,
        settings: Settings,
        engine_config: EngineConfig | None = None,
        price_cache: SingleFlightCache[PriceSnapshot] | None = None,
        candle_cache: SingleFlightCache[CandleWindow] | None = None,
        analysis_cache: SingleFlightCache[AssetAnalysis] | None = None,
    ):
        self.price_provider = price_provider
        self.candle_provider = candle_provider
        self.settings = settings
        self.engine_config = engine_config or EngineConfig()
        self.executor = StrategyExecutor(self.engine_config)

        self.price_cache = price_cache or SingleFlightCache(
            "prices", settings.price_cache_ttl, settings.price_cache_size
        )
        self.candle_cache = candle_cache or SingleFlightCache(
            "candles", settings.candle_cache_ttl, settings.candle_cache_size
        )
        self.analysis_cache = analysis_cache or SingleFlightCache(
            "analysis", settings.analysis_cache_ttl, settings.analysis_cache_size
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, engine_config: EngineConfig | None = None
    ) -> "AnalysisService":
        """Build a service wired to the CoinGecko and Binance clients."""
        prices = CoinGeckoClient(
            base_url=settings.coingecko_url,
            api_key=settings.coingecko_api_key,
            calls_per_minute=settings.coingecko_calls_per_minute,
            timeout=settings.request_timeout,
        )
        candles = BinanceRestClient(
            base_url=settings.binance_url,
            quote_asset=settings.quote_asset,
            calls_per_minute=settings.binance_calls_per_minute,
            timeout=settings.request_timeout,
        )
        return cls(prices, candles, settings, engine_config)

    async def close(self) -> None:
        """Close providers that hold network resources."""
        for provider in (self.price_provider, self.candle_provider):
            close = getattr(provider, "close", None)
            if close is not None:
                await close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── Fetching ──────────────────────────────────────────────

    async def _fetch_snapshot(self, symbol: str) -> PriceSnapshot:
        return await self.price_cache.get_or_compute(
            symbol,
            lambda: self._with_timeout(
                self.price_provider.get_price_snapshot(symbol), "prices", symbol
            ),
        )

    async def _fetch_candles(self, symbol: str) -> CandleWindow:
        interval = self.settings.candle_interval
        limit = self.settings.candle_limit
        return await self.candle_cache.get_or_compute(
            f"{symbol}:{interval}:{limit}",
            lambda: self._with_timeout(
                self.candle_provider.get_candles(symbol, interval, limit), "candles", symbol
            ),
        )

    async def _with_timeout(self, coro, provider: str, symbol: str):
        try:
            return await asyncio.wait_for(coro, timeout=self.settings.fetch_timeout)
        except asyncio.TimeoutError as e:
            raise DataSourceError(
                provider, f"fetch for {symbol} timed out after {self.settings.fetch_timeout}s"
            ) from e

    # ── Analysis ──────────────────────────────────────────────

    async def analyze(self, symbol: str) -> AssetAnalysis:
        """Fetch fresh inputs (through the data caches) and analyze one asset.

        Raises:
            DataSourceError: If either fetch failed or timed out.
            AnalysisError: If the engine could not produce a result.
        """
        symbol = symbol.upper()
        snapshot, window = await asyncio.gather(
            self._fetch_snapshot(symbol), self._fetch_candles(symbol)
        )
        return analyze(symbol, snapshot, window, self.engine_config, self.executor)

    async def get_cached(self, symbol: str) -> AssetAnalysis:
        """Return the cached analysis for symbol, computing it at most once per TTL."""
        symbol = symbol.upper()
        return await self.analysis_cache.get_or_compute(symbol, lambda: self.analyze(symbol))

    async def analyze_many(self, symbols: list[str]) -> BatchResult:
        """Analyze several symbols concurrently; one failure never affects another."""
        unique = list(dict.fromkeys(s.upper() for s in symbols))
        outcomes = await asyncio.gather(
            *(self.get_cached(symbol) for symbol in unique), return_exceptions=True
        )

        result = BatchResult()
        for symbol, outcome in zip(unique, outcomes):
            if isinstance(outcome, SignalEngineError):
                logger.warning("Analysis failed for %s: %s", symbol, outcome)
                result.errors[symbol] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.analyses[symbol] = outcome

        logger.info(
            "Analyzed %d/%d symbols (%d failed)",
            len(result.analyses),
            len(unique),
            len(result.errors),
        )
        return result

    def summarize(self, analyses: list[AssetAnalysis]) -> MarketSummary:
        return summarize(analyses, self.settings.high_risk)


def summarize(analyses: list[AssetAnalysis], high_risk: int = 70) -> MarketSummary:
    """Count strong signals, high-risk assets and crashes across analyses."""
    return MarketSummary(
        total=len(analyses),
        strong_buy=sum(1 for a in analyses if a.overall_signal == Signal.STRONG_BUY),
        strong_sell=sum(1 for a in analyses if a.overall_signal == Signal.STRONG_SELL),
        high_risk=sum(1 for a in analyses if a.risk_score >= high_risk),
        crashing=sum(1 for a in analyses if a.crash_signal.is_crashing),
    )
