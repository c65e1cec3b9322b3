"""Binance spot REST client for OHLCV candles."""

from __future__ import annotations

from typing import Any

import httpx
import orjson

from signalapp.clients.base import RestClient, retry_after
from signalcore.errors import DataNotAvailableError, DataSourceError, RateLimitError
from signalcore.models.market import Candle, CandleWindow

INVALID_SYMBOL = -1121
MAX_LIMIT = 1000


class BinanceRestClient(RestClient):
    """Binance Spot REST API client."""

    PROVIDER = "binance"
    BASE_URL = "https://api.binance.com"

    def __init__(
        self,
        base_url: str = BASE_URL,
        quote_asset: str = "USDT",
        api_key: str = "",
        calls_per_minute: int = 1200,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"X-MBX-APIKEY": api_key} if api_key else {}
        super().__init__(base_url, calls_per_minute, timeout, headers, transport)
        self.quote_asset = quote_asset

    def pair(self, symbol: str) -> str:
        """Map an asset symbol to its trading pair (BTC -> BTCUSDT)."""
        symbol = symbol.upper()
        return symbol if symbol.endswith(self.quote_asset) else symbol + self.quote_asset

    async def get_candles(self, symbol: str, interval: str = "1h", limit: int = 200) -> CandleWindow:
        """Fetch the most recent candles for an asset.

        Args:
            symbol: Asset symbol (e.g., "BTC") or full pair ("BTCUSDT")
            interval: Kline interval (e.g., "15m", "1h")
            limit: Number of candles (max 1000)

        Returns:
            CandleWindow in chronological order, keyed by the asset symbol
        """
        params: dict[str, Any] = {
            "symbol": self.pair(symbol),
            "interval": interval,
            "limit": min(limit, MAX_LIMIT),
        }
        data = await self._request("GET", "/api/v3/klines", params)
        if not isinstance(data, list):
            raise DataSourceError(self.PROVIDER, "unexpected klines payload")
        if not data:
            raise DataNotAvailableError(self.PROVIDER, params["symbol"])

        try:
            candles = [
                Candle(
                    time=int(item[0]) // 1000,
                    open=float(item[1]),
                    high=float(item[2]),
                    low=float(item[3]),
                    close=float(item[4]),
                    volume=float(item[5]),
                )
                for item in data
            ]
        except (IndexError, TypeError, ValueError) as e:
            raise DataSourceError(self.PROVIDER, f"malformed kline: {e}") from e

        return CandleWindow.from_candles(symbol.upper(), candles, max_size=max(limit, len(candles)))

    def _status_error(self, response: httpx.Response, params: dict[str, Any]) -> DataSourceError:
        if response.status_code == 418:
            # IP auto-banned after ignoring 429s
            return RateLimitError(self.PROVIDER, retry_after(response))
        if response.status_code == 400:
            try:
                code = orjson.loads(response.content).get("code")
            except (orjson.JSONDecodeError, AttributeError):
                code = None
            if code == INVALID_SYMBOL:
                return DataNotAvailableError(self.PROVIDER, params.get("symbol", "?"))
        return super()._status_error(response, params)
