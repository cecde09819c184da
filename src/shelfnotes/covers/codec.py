# ABOUTME: ThumbnailCodec: metadata-only size probing and orientation-correct JPEG thumbnails.
# ABOUTME: PillowThumbnailCodec is the production codec; NullThumbnailCodec always fails.

import io
import math
import struct
from typing import NamedTuple, Protocol, runtime_checkable

from PIL import Image, ImageOps, UnidentifiedImageError

DEFAULT_LOW_RES_FLOOR = 420

# Pillow reports malformed or truncated data with any of these.
_DECODE_ERRORS = (
    UnidentifiedImageError,
    OSError,
    ValueError,
    SyntaxError,
    EOFError,
    struct.error,
    Image.DecompressionBombError,
)


class ThumbnailError(Exception):
    """Raised when image bytes cannot be decoded or re-encoded."""


class PixelSize(NamedTuple):
    width: int
    height: int

    @property
    def max_dimension(self) -> int:
        return max(self.width, self.height)


@runtime_checkable
class ThumbnailCodec(Protocol):
    """Capability interface for image size probing and thumbnail encoding."""

    def probe_size(self, data: bytes) -> PixelSize: ...

    def make_thumbnail(self, data: bytes, max_pixel: int | None, quality: float) -> bytes: ...

    def is_low_resolution(self, data: bytes) -> bool: ...


class PillowThumbnailCodec:
    """Thumbnail codec backed by Pillow.

    ``probe_size`` only parses the image header: Pillow's ``Image.open`` is
    lazy and does not decode pixel data until it is needed.
    """

    def __init__(self, low_res_floor: int = DEFAULT_LOW_RES_FLOOR) -> None:
        self._low_res_floor = low_res_floor

    @property
    def low_res_floor(self) -> int:
        return self._low_res_floor

    def probe_size(self, data: bytes) -> PixelSize:
        """Read pixel dimensions from image metadata.

        Raises:
            ThumbnailError: If the bytes are not a recognizable image.
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
        except _DECODE_ERRORS as exc:
            raise ThumbnailError(f"Unreadable image header: {exc}") from exc
        return PixelSize(width, height)

    def is_low_resolution(self, data: bytes) -> bool:
        """True when the longer edge is below the floor, or the size can't be read."""
        try:
            size = self.probe_size(data)
        except ThumbnailError:
            return True
        return size.max_dimension < self._low_res_floor

    def make_thumbnail(self, data: bytes, max_pixel: int | None, quality: float) -> bytes:
        """Decode, apply EXIF orientation, downscale, and re-encode as JPEG.

        Args:
            data: Source image bytes (any format Pillow reads).
            max_pixel: Upper bound for the longer edge. None keeps the
                original dimensions (orientation-normalize and re-encode only).
            quality: JPEG quality factor in (0, 1].

        Returns:
            JPEG bytes whose longer edge is at most ``max_pixel``.

        Raises:
            ThumbnailError: If the image cannot be decoded or encoded.
        """
        try:
            with Image.open(io.BytesIO(data)) as src:
                img = ImageOps.exif_transpose(src)
                width, height = img.size
                if width <= 0 or height <= 0:
                    raise ThumbnailError("Image has no pixels")

                if max_pixel is not None and max(width, height) > max_pixel:
                    scale = max_pixel / max(width, height)
                    target = (
                        max(1, math.floor(width * scale)),
                        max(1, math.floor(height * scale)),
                    )
                    img = img.resize(target, Image.Resampling.LANCZOS)

                img = _to_rgb(img)
                out = io.BytesIO()
                img.save(out, format="JPEG", quality=round(quality * 100), optimize=True)
        except _DECODE_ERRORS as exc:
            raise ThumbnailError(f"Cannot thumbnail image: {exc}") from exc
        return out.getvalue()


class NullThumbnailCodec:
    """Codec for environments without imaging support: every operation fails.

    With it, resolution always exhausts its candidates and callers fall back
    to the placeholder.
    """

    def probe_size(self, data: bytes) -> PixelSize:
        raise ThumbnailError("No imaging support available")

    def make_thumbnail(self, data: bytes, max_pixel: int | None, quality: float) -> bytes:
        raise ThumbnailError("No imaging support available")

    def is_low_resolution(self, data: bytes) -> bool:
        return True


def _to_rgb(img: Image.Image) -> Image.Image:
    """Flatten any alpha onto white and convert to RGB for JPEG output."""
    if img.mode == "RGB":
        return img
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")
