"""Caching layer."""

from signalapp.storage.cache import CacheEntry, CacheStats, SingleFlightCache

__all__ = ["CacheEntry", "CacheStats", "SingleFlightCache"]
