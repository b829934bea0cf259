"""Image preprocessing for the vision API."""

from __future__ import annotations

import base64
import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from fuel_vision.domain.analysis.models import DEFAULT_MAX_DIMENSION
from fuel_vision.domain.shared.errors import ImageProcessingError

# Pillow's 1-95 scale for a 0.8 compression quality
JPEG_QUALITY = 80


def scaled_dimensions(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """
    Compute dimensions fitting within max_dimension, keeping aspect ratio.

    Images already within bounds are returned unchanged.

    Example:
        >>> scaled_dimensions(4032, 3024, 1024)
        (1024, 768)
        >>> scaled_dimensions(800, 600, 1024)
        (800, 600)
    """
    ratio = min(max_dimension / width, max_dimension / height)
    if ratio >= 1:
        return width, height

    return max(1, round(width * ratio)), max(1, round(height * ratio))


def _to_rgb(img: Image.Image) -> Image.Image:
    """Flatten transparency onto white; JPEG has no alpha channel."""
    if img.mode in ("RGBA", "LA", "P"):
        background = Image.new("RGB", img.size, (255, 255, 255))
        if img.mode == "P":
            img = img.convert("RGBA")
        mask = img.split()[-1]
        background.paste(img, mask=mask)
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def resize_image(img: Image.Image, max_dimension: int = DEFAULT_MAX_DIMENSION) -> Image.Image:
    """Downscale so neither side exceeds max_dimension."""
    new_size = scaled_dimensions(img.width, img.height, max_dimension)
    if new_size == img.size:
        return img
    return img.resize(new_size, Image.Resampling.LANCZOS)


def encode_jpeg(img: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    output = io.BytesIO()
    _to_rgb(img).save(output, format="JPEG", quality=quality)
    return output.getvalue()


def prepare_image(
    image_data: bytes,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: int = JPEG_QUALITY,
) -> str:
    """
    Decode, downscale, JPEG-encode and base64-encode an image.

    Args:
        image_data: Raw image bytes (JPEG, PNG, WebP, ...)
        max_dimension: Longest allowed side in pixels
        quality: JPEG quality

    Returns:
        Base64 JPEG string

    Raises:
        ImageProcessingError: If the image cannot be decoded, exceeds Pillow's
            pixel limit, or encodes to nothing
    """
    if not image_data:
        raise ImageProcessingError("Image data is empty")

    try:
        with Image.open(io.BytesIO(image_data)) as img:
            img.load()
            jpeg = encode_jpeg(resize_image(img, max_dimension), quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageProcessingError(f"Failed to process image: {e}") from e

    if not jpeg:
        raise ImageProcessingError()

    return base64.b64encode(jpeg).decode("ascii")
