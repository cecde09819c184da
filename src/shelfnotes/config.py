# ABOUTME: Default paths and tunable settings for the Shelf Notes cover pipeline.
# ABOUTME: CoverSettings holds thumbnail sizes, JPEG qualities, and backfill throttling.

from dataclasses import dataclass
from pathlib import Path

DEFAULT_HOME = Path.home() / ".shelfnotes"
DEFAULT_DB_PATH = DEFAULT_HOME / "library.db"
DEFAULT_CACHE_DIR = DEFAULT_HOME / "cover-cache"
DEFAULT_USER_COVER_DIR = DEFAULT_HOME / "user-covers"


@dataclass(frozen=True)
class CoverSettings:
    """Tunable constants for thumbnail generation and background backfill.

    The defaults produce thumbnails that look crisp for a 120x180pt cover on
    3x screens while keeping the synced payload small.
    """

    thumbnail_max_pixel: int = 600
    thumbnail_quality: float = 0.82
    full_res_quality: float = 0.95
    low_res_floor: int = 420
    backfill_batch_size: int = 6
    backfill_delay: float = 0.12
    memory_cache_budget: int = 48 * 1024 * 1024
    request_timeout: float = 30.0
    large_surface_threshold: int = 110

    def __post_init__(self) -> None:
        for name in ("thumbnail_quality", "full_res_quality"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        for name in (
            "thumbnail_max_pixel",
            "low_res_floor",
            "backfill_batch_size",
            "memory_cache_budget",
            "large_surface_threshold",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.backfill_delay < 0:
            raise ValueError(f"backfill_delay must be non-negative, got {self.backfill_delay}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
