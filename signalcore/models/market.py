"""Market data models: 24h price snapshots and OHLCV candles."""

import math
from collections.abc import Iterable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class PriceSnapshot(BaseModel):
    """Spot price and 24h statistics for one asset."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    change_24h: float = 0.0  # Percent
    volume_24h: float = 0.0
    market_cap: float = 0.0
    high_24h: float | None = None
    low_24h: float | None = None
    ath_change_pct: float | None = None  # Distance from all-time high, percent
    atl_change_pct: float | None = None  # Distance from all-time low, percent
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_range(self) -> bool:
        """Check if both 24h high and low are usable."""
        return (
            self.high_24h is not None
            and self.low_24h is not None
            and math.isfinite(self.high_24h)
            and math.isfinite(self.low_24h)
            and self.high_24h >= self.low_24h
        )

    @property
    def spread_pct(self) -> float | None:
        """24h high/low spread as a percentage of the current price."""
        if not self.has_range or not math.isfinite(self.price) or self.price <= 0:
            return None
        return (self.high_24h - self.low_24h) / self.price * 100


class Candle(BaseModel):
    """OHLCV candle. ``time`` is the open time in epoch seconds."""

    model_config = ConfigDict(frozen=True)

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


class CandleWindow(BaseModel):
    """Bounded, chronological, immutable window of candles used for indicator input."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    candles: tuple[Candle, ...] = ()
    max_size: int = 500

    @classmethod
    def from_candles(
        cls, symbol: str, candles: Iterable[Candle], max_size: int = 500
    ) -> "CandleWindow":
        """Build a window from candles in any order, keeping the newest max_size.

        Candles sharing an open time collapse to the last one given.
        """
        by_time = {c.time: c for c in candles}
        ordered = [by_time[t] for t in sorted(by_time)]
        return cls(symbol=symbol, candles=tuple(ordered[-max_size:]), max_size=max_size)

    def add(self, candle: Candle) -> "CandleWindow":
        """Return a new window with candle appended, maintaining order and max size."""
        if self.candles and candle.time <= self.candles[-1].time:
            # Replace the latest candle while it is still forming
            if candle.time != self.candles[-1].time:
                return self
            candles = self.candles[:-1] + (candle,)
        else:
            candles = (self.candles + (candle,))[-self.max_size :]
        return self.model_copy(update={"candles": candles})

    def opens(self) -> list[float]:
        return [c.open for c in self.candles]

    def highs(self) -> list[float]:
        return [c.high for c in self.candles]

    def lows(self) -> list[float]:
        return [c.low for c in self.candles]

    def closes(self) -> list[float]:
        return [c.close for c in self.candles]

    def volumes(self) -> list[float]:
        return [c.volume for c in self.candles]

    @property
    def last(self) -> Candle | None:
        return self.candles[-1] if self.candles else None

    def __len__(self) -> int:
        return len(self.candles)
