# ABOUTME: URL-keyed image byte caches: a bounded in-memory LRU and a persistent disk cache.
# ABOUTME: Both are injectable services; writes are full replacements so concurrent writers are safe.

import hashlib
import logging
import os
import shutil
import tempfile
import threading
from collections import OrderedDict
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

_DEFAULT_MEMORY_BUDGET = 48 * 1024 * 1024  # 48 MB


class MemoryImageCache:
    """Process-lifetime LRU cache of image bytes, bounded by total byte size.

    The lock is held only for a single lookup, insert, or eviction pass; it is
    never held across I/O.
    """

    def __init__(self, max_bytes: int = _DEFAULT_MEMORY_BUDGET) -> None:
        self._max_bytes = max_bytes
        self._entries: OrderedDict[str, bytes] = OrderedDict()
        self._total = 0
        self._lock = threading.Lock()

    def get(self, url: str) -> bytes | None:
        """Return cached bytes for ``url`` and mark it most recently used."""
        with self._lock:
            data = self._entries.get(url)
            if data is not None:
                self._entries.move_to_end(url)
            return data

    def set(self, url: str, data: bytes) -> None:
        """Store bytes for ``url``, evicting least recently used entries over budget.

        Entries larger than the whole budget are not cached.
        """
        size = len(data)
        with self._lock:
            old = self._entries.pop(url, None)
            if old is not None:
                self._total -= len(old)
            if size > self._max_bytes:
                return
            self._entries[url] = data
            self._total += size
            while self._total > self._max_bytes:
                _, evicted = self._entries.popitem(last=False)
                self._total -= len(evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._total = 0

    @property
    def total_bytes(self) -> int:
        return self._total

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries


class DiskImageCache:
    """Persistent cache of raw image bytes keyed by URL.

    Files are named by the SHA-256 of the URL plus the URL's path extension
    (``img`` when it has none). Writes go to a temp file that is atomically
    renamed into place, so readers never see a partial entry.
    """

    def __init__(self, folder: Path) -> None:
        self._folder = folder
        self._folder.mkdir(parents=True, exist_ok=True)

    @property
    def folder(self) -> Path:
        return self._folder

    def path_for(self, url: str) -> Path:
        """Cache file path for a URL."""
        key = hashlib.sha256(url.encode("utf-8")).hexdigest()
        try:
            suffix = PurePosixPath(urlsplit(url).path).suffix.lstrip(".")
        except ValueError:
            suffix = ""
        return self._folder / f"{key}.{suffix or 'img'}"

    def get(self, url: str) -> bytes | None:
        """Return the cached bytes for ``url``, or None on a miss or unreadable entry."""
        path = self.path_for(url)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.debug("Unreadable disk cache entry %s: %s", path, exc)
            return None

    def store(self, url: str, data: bytes) -> None:
        """Write bytes for ``url``. Failures are logged and otherwise ignored."""
        path = self.path_for(url)
        try:
            self._folder.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._folder, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.warning("Could not write disk cache entry for %s: %s", url, exc)

    def size_bytes(self) -> int:
        """Total size of all cached files."""
        if not self._folder.exists():
            return 0
        return sum(p.stat().st_size for p in self._folder.iterdir() if p.is_file())

    def clear(self) -> None:
        """Remove every cached file and recreate the empty folder."""
        shutil.rmtree(self._folder, ignore_errors=True)
        self._folder.mkdir(parents=True, exist_ok=True)
