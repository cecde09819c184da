# ABOUTME: Async HTTP client abstraction for downloading cover image bytes.
# ABOUTME: Provides rate limiting, retry with backoff, and injectable transport for testing.

import asyncio
import logging
import time
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ImageHttpError(Exception):
    """Raised when an image download fails or returns a non-2xx status."""


@runtime_checkable
class ImageHttpClient(Protocol):
    """Protocol for async GET operations returning raw response bytes."""

    async def get_bytes(self, url: str) -> bytes: ...


class ShelfNotesHttpClient:
    """Async HTTP client with rate limiting and retry for cover downloads.

    Wraps httpx.AsyncClient with a minimum request interval and retry logic
    for transient failures (429, 5xx). Any other non-2xx status fails
    immediately: a dead cover link will not come back on retry.
    """

    def __init__(
        self,
        *,
        min_request_interval: float = 0.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": "shelfnotes/0.1.0", "Accept": "image/*"},
            "timeout": timeout,
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)
        self._min_interval = min_request_interval
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._last_request_time: float = 0.0
        self._rate_lock = asyncio.Lock()

    async def get_bytes(self, url: str) -> bytes:
        """Send a GET request with rate limiting and retry.

        Args:
            url: The image URL to request.

        Returns:
            Raw response body.

        Raises:
            ImageHttpError: On transport errors, non-retryable statuses, or
                exhausted retries.
        """
        await self._rate_limit()

        attempts = 1 + self._max_retries
        last_status = 0
        for attempt in range(attempts):
            try:
                response = await self._client.get(url)
                last_status = response.status_code
            except httpx.HTTPError as exc:
                raise ImageHttpError(f"Request failed: {url}: {exc}") from exc

            if response.is_success:
                return response.content

            if response.status_code not in _RETRYABLE_STATUS_CODES:
                raise ImageHttpError(f"HTTP {response.status_code} from {url}")

            if attempt < attempts - 1:
                delay = self._retry_delay * (2**attempt)
                logger.warning(
                    "HTTP %d from %s, retrying in %.1fs (attempt %d/%d)",
                    response.status_code,
                    url,
                    delay,
                    attempt + 1,
                    self._max_retries,
                )
                await asyncio.sleep(delay)

        raise ImageHttpError(f"HTTP {last_status} from {url} after {attempts} attempts")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _rate_limit(self) -> None:
        """Sleep if needed to maintain minimum interval between requests."""
        if self._min_interval <= 0:
            return
        async with self._rate_lock:
            now = time.monotonic()
            elapsed = now - self._last_request_time
            if elapsed < self._min_interval and self._last_request_time > 0:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()
