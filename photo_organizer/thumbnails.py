"""
Preview generation for catalogued images.

The scaling rule lives in compute_thumbnail_size; decoding, rendering and
encoding go through an ImageCodec so another imaging backend can replace
Pillow without touching the math.
"""

import base64
import datetime
import io
import os
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional, Tuple, Union

from PIL import Image, ImageChops, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from .config import AppConfig
from .errors import DecodeError, EncodeError, ThumbnailError
from .logging_setup import get_logger

logger = get_logger(__name__)

ImageSource = Union[bytes, str, os.PathLike, BinaryIO]

# MIME type -> Pillow format name
SUPPORTED_FORMATS = {
    'image/jpeg': 'JPEG',
    'image/png': 'PNG',
    'image/webp': 'WEBP',
}

DEFAULT_MAX_WIDTH = 200
DEFAULT_MAX_HEIGHT = 200
DEFAULT_QUALITY = 0.8
DEFAULT_FORMAT = 'image/jpeg'


def compute_thumbnail_size(width: int, height: int, max_width: int, max_height: int) -> Tuple[int, int]:
    """
    Aspect-preserving target size that fits within the bounds and never upscales.

    scale = min(1, max_width / width, max_height / height)

    Args:
        width: Source width in pixels
        height: Source height in pixels
        max_width: Bounding box width
        max_height: Bounding box height

    Returns:
        (width, height) of the thumbnail, each at least 1 pixel
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid source dimensions: {width}x{height}")
    if max_width <= 0 or max_height <= 0:
        raise ValueError(f"Invalid thumbnail bounds: {max_width}x{max_height}")

    scale = min(1.0, max_width / width, max_height / height)
    return max(1, round(width * scale)), max(1, round(height * scale))


@dataclass(frozen=True)
class ThumbnailResult:
    """Encoded preview bytes and their metadata."""
    data: bytes
    width: int
    height: int
    mime_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode('utf-8')
        return f"data:{self.mime_type};base64,{encoded}"


class ImageCodec(ABC):
    """Capability interface for an imaging backend."""

    @abstractmethod
    def decode(self, source: ImageSource) -> Any:
        """Open the source and return a backend handle. Raises DecodeError."""

    @abstractmethod
    def decode_dimensions(self, handle: Any) -> Tuple[int, int]:
        """Natural (width, height) of a decoded handle."""

    @abstractmethod
    def render_scaled(self, handle: Any, width: int, height: int) -> Any:
        """Render the handle into a new surface of the given size."""

    @abstractmethod
    def encode(self, surface: Any, mime_type: str, quality: float) -> bytes:
        """Encode a surface. Raises EncodeError."""

    @abstractmethod
    def release(self, surface: Any) -> None:
        """Free a handle or surface."""


class PillowCodec(ImageCodec):
    """ImageCodec backed by Pillow."""

    def decode(self, source: ImageSource) -> Image.Image:
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        try:
            img = Image.open(source)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise DecodeError(f"Failed to load image: {str(e)}") from e
        try:
            img.load()
        except (Image.DecompressionBombError, OSError, ValueError) as e:
            # Truncated data fails here, after Pillow has opened the file
            img.close()
            raise DecodeError(f"Failed to load image: {str(e)}") from e

        # Honour camera orientation so portrait shots are not previewed sideways
        try:
            oriented = ImageOps.exif_transpose(img)
        except Exception as e:
            logger.debug(f"Ignoring unreadable EXIF orientation: {str(e)}")
            return img
        if oriented is not img:
            img.close()
        return oriented

    def decode_dimensions(self, handle: Image.Image) -> Tuple[int, int]:
        return handle.width, handle.height

    def render_scaled(self, handle: Image.Image, width: int, height: int) -> Image.Image:
        if (width, height) == handle.size:
            return handle.copy()
        return handle.resize((width, height), Image.Resampling.LANCZOS)

    def encode(self, surface: Image.Image, mime_type: str, quality: float) -> bytes:
        pil_format = SUPPORTED_FORMATS.get(mime_type)
        if pil_format is None:
            raise EncodeError(f"Unsupported thumbnail format: {mime_type}")

        img = surface
        if pil_format == 'JPEG' and img.mode != 'RGB':
            img = img.convert('RGB')

        buffer = io.BytesIO()
        try:
            if pil_format == 'PNG':
                img.save(buffer, format=pil_format, optimize=True)
            else:
                img.save(buffer, format=pil_format, quality=_pillow_quality(quality))
            return buffer.getvalue()
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Could not encode thumbnail as {mime_type}: {str(e)}") from e
        finally:
            buffer.close()
            if img is not surface:
                img.close()

    def release(self, surface: Optional[Image.Image]) -> None:
        if surface is not None:
            surface.close()


def _pillow_quality(quality: float) -> int:
    """Map a 0-1 quality factor onto Pillow's 1-95 scale."""
    if not 0 <= quality <= 1:
        raise EncodeError(f"Quality must be between 0 and 1, got {quality}")
    return max(1, min(95, int(round(quality * 100))))


class ThumbnailPipeline:
    """Decode, scale and re-encode images into previews."""

    def __init__(self, config: Optional[AppConfig] = None, codec: Optional[ImageCodec] = None):
        """
        Initialize the pipeline.

        Args:
            config: Application configuration supplying default bounds and format
            codec: Imaging backend (Pillow by default)
        """
        self.config = config or AppConfig()
        self.codec = codec or PillowCodec()
        self._executor: Optional[ThreadPoolExecutor] = None

    def resize(self, source: ImageSource, max_width: Optional[int] = None, max_height: Optional[int] = None,
               quality: Optional[float] = None, fmt: Optional[str] = None) -> ThumbnailResult:
        """
        Produce a scaled, re-encoded preview of ``source``.

        Args:
            source: Image bytes, file path or binary file object
            max_width: Bounding box width (config default when None)
            max_height: Bounding box height (config default when None)
            quality: Encoder quality between 0 and 1
            fmt: Output MIME type, e.g. "image/jpeg"

        Returns:
            ThumbnailResult

        Raises:
            DecodeError: If the source cannot be decoded
            EncodeError: If the output cannot be produced
            ValueError: If an explicit bound is not positive
        """
        max_width = self.config.thumbnail_max_width if max_width is None else max_width
        max_height = self.config.thumbnail_max_height if max_height is None else max_height
        quality = self.config.thumbnail_quality if quality is None else quality
        fmt = self.config.thumbnail_format if fmt is None else fmt

        handle = self.codec.decode(source)
        surface = None
        try:
            width, height = self.codec.decode_dimensions(handle)
            target_width, target_height = compute_thumbnail_size(width, height, max_width, max_height)
            surface = self.codec.render_scaled(handle, target_width, target_height)
            data = self.codec.encode(surface, fmt, quality)
        finally:
            self.codec.release(surface)
            self.codec.release(handle)

        logger.debug(f"Thumbnail {width}x{height} -> {target_width}x{target_height} "
                     f"({fmt}, {len(data)} bytes)")
        return ThumbnailResult(data=data, width=target_width, height=target_height, mime_type=fmt)

    def submit(self, source: ImageSource, **kwargs) -> Future:
        """
        Run resize on a worker thread.

        Callers that lose interest may drop or cancel the future; resize
        releases its decode and render surfaces whether or not the result is
        ever read.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=max(1, self.config.thumbnail_workers),
                thread_name_prefix="thumbnail"
            )
        return self._executor.submit(self.resize, source, **kwargs)

    def thumbnail_or_original(self, source: ImageSource, original_ref: Optional[str] = None,
                              **kwargs) -> Optional[str]:
        """
        Preview reference for display: a data URL, or ``original_ref`` on failure.

        A missing thumbnail is never fatal; callers display the original asset.
        """
        try:
            return self.resize(source, **kwargs).to_data_url()
        except ThumbnailError as e:
            logger.warning(f"Thumbnail generation failed, using original: {str(e)}")
            return original_ref

    def close(self) -> None:
        """Shut down the worker pool, if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def create_test_image(width: int = 400, height: int = 300, text: str = "Test Image",
                      timestamp: Optional[datetime.datetime] = None) -> bytes:
    """
    Render a gradient PNG with a caption, used to try the catalog without real photos.

    Args:
        width: Image width
        height: Image height
        text: Caption drawn in the centre
        timestamp: Second caption line (defaults to now)

    Returns:
        PNG bytes
    """
    start = Image.new('RGB', (width, height), '#667eea')
    end = Image.new('RGB', (width, height), '#764ba2')

    # Diagonal mask: average of a horizontal and a vertical ramp
    vertical = Image.linear_gradient('L').resize((width, height))
    horizontal = Image.linear_gradient('L').rotate(90).resize((width, height))
    mask = ImageChops.add(horizontal, vertical, scale=2.0)

    img = Image.composite(end, start, mask)
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    stamp = (timestamp or datetime.datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    for line, y in ((text, height / 2), (stamp, height / 2 + 30)):
        left, top, right, bottom = draw.textbbox((0, 0), line, font=font)
        draw.text(((width - (right - left)) / 2, y - (bottom - top) / 2), line, fill='white', font=font)

    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    for surface in (start, end, vertical, horizontal, mask, img):
        surface.close()
    return buffer.getvalue()
