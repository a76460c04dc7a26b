"""
Image Compression Pipeline

Re-encodes uploads as JPEG under a byte budget:

1. Fit inside (max_width, max_height), never upscaling
2. Encode at the initial quality, stepping quality down until the output
   fits or the quality floor is reached
3. Still too large at the floor: shrink the source by sqrt(budget / size),
   keeping each side at least ``min_side``, and encode once more at the
   floor quality. That last result is returned as-is, so past this point
   the budget is a target rather than a guarantee.

The floor-pass box is also capped at (max_width, max_height). This
deliberately departs from scaling the source dimensions with only the
``min_side`` floor: a soft-limited result never exceeds the configured box.

The output is deterministic for identical input and Pillow version.
"""
import io
import logging
import math
from dataclasses import dataclass
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from vehicle_storage.core.exceptions import ImageDecodeError, ImageEncodeError

logger = logging.getLogger(__name__)

JPEG_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class CompressedImage:
    """Result of one compression run"""
    data: bytes
    width: int
    height: int
    quality: int
    soft_limited: bool = False  # True when the floor pass ran

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def content_type(self) -> str:
        return JPEG_CONTENT_TYPE


def fit_within(width: int, height: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """
    Largest size with the source aspect ratio that fits the box.
    Never returns a size larger than the source.
    """
    scale = min(max_width / width, max_height / height, 1.0)
    return max(1, round(width * scale)), max(1, round(height * scale))


class CompressionPipeline:
    """
    Adaptive JPEG re-encoder.

    Example:
        >>> pipeline = CompressionPipeline(max_bytes=300 * 1024, max_width=1071, max_height=1428)
        >>> result = pipeline.compress(raw_upload)
        >>> result.size_bytes <= 300 * 1024 or result.soft_limited
        True
    """

    def __init__(
        self,
        max_bytes: int,
        max_width: int,
        max_height: int,
        initial_quality: int = 80,
        min_quality: int = 25,
        quality_step: int = 10,
        min_side: int = 320,
    ):
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if not 1 <= min_quality <= initial_quality <= 95:
            raise ValueError("qualities must satisfy 1 <= min_quality <= initial_quality <= 95")

        self.max_bytes = max_bytes
        self.max_width = max_width
        self.max_height = max_height
        self.initial_quality = initial_quality
        self.min_quality = min_quality
        self.quality_step = quality_step
        self.min_side = min_side

    def compress(self, data: bytes) -> CompressedImage:
        """
        Re-encode raw image bytes under the byte budget.

        Raises:
            ImageDecodeError: If the bytes are not a readable image
            ImageEncodeError: If JPEG encoding fails
        """
        source = self._decode(data)
        width, height = fit_within(source.width, source.height, self.max_width, self.max_height)
        resized = self._resize(source, width, height)

        quality = self.initial_quality
        encoded = self._encode(resized, quality)

        while len(encoded) > self.max_bytes:
            quality -= self.quality_step
            if quality < self.min_quality:
                return self._floor_pass(source, len(encoded))
            encoded = self._encode(resized, quality)

        logger.debug(
            f"Compressed {len(data)} -> {len(encoded)} bytes at q{quality} ({width}x{height})"
        )
        return CompressedImage(data=encoded, width=width, height=height, quality=quality)

    def _floor_pass(self, source: Image.Image, last_size: int) -> CompressedImage:
        """Shrink the source in proportion to the overshoot and encode at the floor."""
        scale = math.sqrt(self.max_bytes / last_size)
        box_width = max(self.min_side, math.floor(source.width * scale))
        box_height = max(self.min_side, math.floor(source.height * scale))
        width, height = fit_within(
            source.width,
            source.height,
            min(box_width, self.max_width),
            min(box_height, self.max_height),
        )

        encoded = self._encode(self._resize(source, width, height), self.min_quality)
        if len(encoded) > self.max_bytes:
            logger.info(
                f"Compression budget missed: {len(encoded)} > {self.max_bytes} bytes "
                f"at q{self.min_quality} ({width}x{height})"
            )
        return CompressedImage(
            data=encoded,
            width=width,
            height=height,
            quality=self.min_quality,
            soft_limited=True,
        )

    def _decode(self, data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                if img.mode != "RGB":
                    return img.convert("RGB")
                return img.copy()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ImageDecodeError(f"Unreadable image: {e}") from e

    def _resize(self, image: Image.Image, width: int, height: int) -> Image.Image:
        if (width, height) == image.size:
            return image
        return image.resize((width, height), Image.Resampling.LANCZOS)

    def _encode(self, image: Image.Image, quality: int) -> bytes:
        buffer = io.BytesIO()
        try:
            image.save(buffer, format="JPEG", quality=quality, optimize=True)
        except (OSError, ValueError) as e:
            raise ImageEncodeError(f"JPEG encoding failed at q{quality}: {e}") from e
        return buffer.getvalue()
