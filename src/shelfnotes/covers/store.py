# ABOUTME: Local storage for full-resolution user-supplied cover photos.
# ABOUTME: Only the generated file name is kept on the book; the synced thumbnail is separate.

import logging
import os
import tempfile
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


class UserCoverStore:
    """Stores user cover photos as ``<uuid4>.jpg`` files in an app-private folder.

    Full-resolution photos can be large, so they stay on this device; the
    catalog keeps only the file name.
    """

    def __init__(self, folder: Path) -> None:
        self._folder = folder

    @property
    def folder(self) -> Path:
        return self._folder

    def path_for(self, filename: str) -> Path | None:
        """Path of a stored photo, or None for a blank or path-like name."""
        name = filename.strip()
        if not name or Path(name).name != name:
            return None
        return self._folder / name

    def save(self, data: bytes) -> str:
        """Write JPEG bytes under a new generated name and return the name.

        Raises:
            OSError: If the file cannot be written.
        """
        self._folder.mkdir(parents=True, exist_ok=True)
        name = f"{uuid.uuid4()}.jpg"
        fd, tmp_name = tempfile.mkstemp(dir=self._folder, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, self._folder / name)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return name

    def read(self, filename: str) -> bytes | None:
        """Bytes of a stored photo, or None if it is missing or unreadable."""
        path = self.path_for(filename)
        if path is None:
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.warning("User cover %s is unreadable: %s", path, exc)
            return None

    def delete(self, filename: str) -> None:
        """Remove a stored photo. Missing files are ignored."""
        path = self.path_for(filename)
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not delete user cover %s: %s", path, exc)
