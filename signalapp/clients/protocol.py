"""Upstream data provider protocols consumed by the analysis service."""

from typing import Protocol, runtime_checkable

from signalcore.models.market import CandleWindow, PriceSnapshot


@runtime_checkable
class PriceSnapshotProvider(Protocol):
    async def get_price_snapshot(self, symbol: str) -> PriceSnapshot:
        """Return the current snapshot or raise a DataSourceError subclass."""
        ...


@runtime_checkable
class CandleProvider(Protocol):
    async def get_candles(self, symbol: str, interval: str, limit: int) -> CandleWindow:
        """Return recent candles or raise a DataSourceError subclass."""
        ...
