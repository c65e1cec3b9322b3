"""CoinGecko REST client for 24h price snapshots."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from signalapp.clients.base import RestClient
from signalcore.errors import DataNotAvailableError, DataSourceError
from signalcore.models.market import PriceSnapshot


class CoinGeckoClient(RestClient):
    """CoinGecko /coins/markets client."""

    PROVIDER = "coingecko"
    BASE_URL = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        base_url: str = BASE_URL,
        api_key: str = "",
        vs_currency: str = "usd",
        calls_per_minute: int = 30,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"x-cg-demo-api-key": api_key} if api_key else {}
        super().__init__(base_url, calls_per_minute, timeout, headers, transport)
        self.vs_currency = vs_currency

    async def get_price_snapshot(self, symbol: str) -> PriceSnapshot:
        """Fetch the current price and 24h statistics for one asset.

        Several coins can share a ticker; the one with the largest market cap wins.
        """
        params = {
            "vs_currency": self.vs_currency,
            "symbols": symbol.lower(),
            "price_change_percentage": "24h",
        }
        data = await self._request("GET", "/coins/markets", params)
        if not isinstance(data, list):
            raise DataSourceError(self.PROVIDER, "unexpected markets payload")

        rows = [
            row
            for row in data
            if isinstance(row, dict)
            and str(row.get("symbol", "")).lower() == symbol.lower()
            and row.get("current_price") is not None
        ]
        if not rows:
            raise DataNotAvailableError(self.PROVIDER, symbol.upper())

        row = max(rows, key=lambda r: r.get("market_cap") or 0)
        try:
            return _to_snapshot(symbol.upper(), row)
        except (TypeError, ValueError) as e:
            raise DataSourceError(self.PROVIDER, f"malformed market row: {e}") from e


def _to_snapshot(symbol: str, row: dict[str, Any]) -> PriceSnapshot:
    return PriceSnapshot(
        symbol=symbol,
        price=float(row["current_price"]),
        change_24h=float(row.get("price_change_percentage_24h") or 0.0),
        volume_24h=float(row.get("total_volume") or 0.0),
        market_cap=float(row.get("market_cap") or 0.0),
        high_24h=_optional(row.get("high_24h")),
        low_24h=_optional(row.get("low_24h")),
        ath_change_pct=_optional(row.get("ath_change_percentage")),
        atl_change_pct=_optional(row.get("atl_change_percentage")),
        timestamp=_parse_time(row.get("last_updated")),
    )


def _optional(value: Any) -> float | None:
    return None if value is None else float(value)


def _parse_time(value: Any) -> datetime:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return datetime.now(timezone.utc)
