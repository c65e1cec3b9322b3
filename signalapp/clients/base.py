"""Shared HTTP plumbing for upstream market data clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
import orjson

from signalcore.errors import DataSourceError, RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Simple rate limiter for API calls."""

    def __init__(self, calls_per_minute: int = 1200):
        self.calls_per_minute = calls_per_minute
        self.interval = 60.0 / calls_per_minute
        self.last_call = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait if necessary to respect rate limit."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            wait_time = self.last_call + self.interval - loop.time()
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self.last_call = loop.time()


class RestClient:
    """Rate-limited JSON-over-HTTP client that maps failures to DataSourceError.

    Subclasses set ``PROVIDER`` and may override ``_status_error`` to map
    provider-specific error payloads.
    """

    PROVIDER = "http"

    def __init__(
        self,
        base_url: str,
        calls_per_minute: int = 1200,
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.headers = headers or {}
        self.rate_limiter = RateLimiter(calls_per_minute)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(
        self, method: str, endpoint: str, params: dict[str, Any] | None = None
    ) -> Any:
        """Make a rate-limited request and decode the JSON body.

        Raises:
            RateLimitError: On HTTP 429.
            DataSourceError: On transport errors, other error statuses or bad JSON.
        """
        await self.rate_limiter.acquire()
        client = await self._get_client()
        try:
            response = await client.request(method, endpoint, params=params)
        except httpx.TimeoutException as e:
            raise DataSourceError(self.PROVIDER, f"timeout calling {endpoint}") from e
        except httpx.HTTPError as e:
            raise DataSourceError(self.PROVIDER, f"request to {endpoint} failed: {e}") from e

        if response.status_code == 429:
            delay = retry_after(response)
            logger.warning(
                "%s rate limited on %s (retry after %s)", self.PROVIDER, endpoint, delay
            )
            raise RateLimitError(self.PROVIDER, delay)
        if response.status_code >= 400:
            raise self._status_error(response, params or {})

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise DataSourceError(
                self.PROVIDER, f"invalid JSON from {endpoint}", response.status_code
            ) from e

    def _status_error(self, response: httpx.Response, params: dict[str, Any]) -> DataSourceError:
        return DataSourceError(
            self.PROVIDER,
            f"HTTP {response.status_code} from {response.request.url.path}",
            response.status_code,
        )


def retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
