"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from SIGNAL_* environment variables and .env."""

    model_config = SettingsConfigDict(
        env_prefix="SIGNAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # CoinGecko (price snapshots)
    coingecko_url: str = "https://api.coingecko.com/api/v3"
    coingecko_api_key: str = ""
    coingecko_calls_per_minute: int = 30

    # Binance (candles)
    binance_url: str = "https://api.binance.com"
    binance_calls_per_minute: int = 1200
    quote_asset: str = "USDT"
    candle_interval: str = "1h"
    candle_limit: int = 200

    # Timeouts (seconds): per HTTP request, and per upstream fetch incl. rate limiting
    request_timeout: float = 10.0
    fetch_timeout: float = 15.0

    # Cache TTL (seconds) and capacity (entries) per data category
    price_cache_ttl: float = 60.0
    price_cache_size: int = 500
    candle_cache_ttl: float = 300.0
    candle_cache_size: int = 500
    analysis_cache_ttl: float = 120.0
    analysis_cache_size: int = 1000

    # Analysis
    engine_config_path: str = "engine.yaml"
    symbols: list[str] = ["BTC", "ETH", "SOL", "BNB", "XRP"]

    # Monitor mode
    monitor_interval_minutes: float = 5.0
    high_confidence: int = 70
    high_risk: int = 70

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
