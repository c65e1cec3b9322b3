"""Market data clients."""

from signalapp.clients.base import RateLimiter, RestClient
from signalapp.clients.binance_rest import BinanceRestClient
from signalapp.clients.coingecko_rest import CoinGeckoClient
from signalapp.clients.protocol import CandleProvider, PriceSnapshotProvider

__all__ = [
    "RateLimiter",
    "RestClient",
    "BinanceRestClient",
    "CoinGeckoClient",
    "CandleProvider",
    "PriceSnapshotProvider",
]
