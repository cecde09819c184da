# ABOUTME: ImageByteFetcher resolves a URL to raw bytes via memory cache, disk cache, then network.
# ABOUTME: Local file URLs bypass the caches and are always read fresh from disk.

import asyncio
import logging
from pathlib import Path
from urllib.parse import unquote, urlsplit

from shelfnotes.covers.cache import DiskImageCache, MemoryImageCache
from shelfnotes.covers.http import ImageHttpClient, ImageHttpError
from shelfnotes.covers.urls import is_local_file_url

logger = logging.getLogger(__name__)


class ImageFetchError(Exception):
    """Raised when bytes for a URL could not be obtained from any tier."""


def file_url_to_path(url: str) -> Path:
    """Convert a ``file:`` URL to a filesystem path."""
    return Path(unquote(urlsplit(url.strip()).path))


class ImageByteFetcher:
    """Fetches raw image bytes, consulting a two-tier cache before the network.

    Lookup order for remote URLs: memory, then disk (promoting hits into
    memory), then an HTTP GET whose body is stored in both tiers under the
    exact URL fetched.
    """

    def __init__(
        self,
        http_client: ImageHttpClient,
        memory_cache: MemoryImageCache,
        disk_cache: DiskImageCache,
    ) -> None:
        self._http = http_client
        self._memory = memory_cache
        self._disk = disk_cache
        self.network_fetches = 0

    async def fetch(self, url: str) -> bytes:
        """Return the bytes behind ``url``.

        Raises:
            ImageFetchError: If the local file is unreadable or the download
                fails (including any non-2xx status).
        """
        if is_local_file_url(url):
            path = file_url_to_path(url)
            try:
                return await asyncio.to_thread(path.read_bytes)
            except OSError as exc:
                raise ImageFetchError(f"Cannot read local file {path}: {exc}") from exc

        cached = self._memory.get(url)
        if cached is not None:
            return cached

        on_disk = await asyncio.to_thread(self._disk.get, url)
        if on_disk is not None:
            self._memory.set(url, on_disk)
            return on_disk

        self.network_fetches += 1
        try:
            data = await self._http.get_bytes(url)
        except ImageHttpError as exc:
            raise ImageFetchError(str(exc)) from exc
        if not data:
            raise ImageFetchError(f"Empty response body from {url}")

        await asyncio.to_thread(self._disk.store, url, data)
        self._memory.set(url, data)
        logger.debug("Fetched %d bytes from %s", len(data), url)
        return data
