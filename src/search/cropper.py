"""Rasterize the clicked region of the source image into a JPEG payload."""

from __future__ import annotations

import base64
import logging
from io import BytesIO

from PIL import Image

from src.detection.models import ImageSize, PixelBox

logger = logging.getLogger(__name__)


class CropError(Exception):
    """Raised when a region cannot be cropped (e.g. it has no area)."""
    pass


def clamp_to_rendered(box: PixelBox, rendered: ImageSize) -> PixelBox:
    left = max(0.0, box.left)
    top = max(0.0, box.top)
    return PixelBox(
        left=left,
        top=top,
        width=max(0.0, min(box.width, rendered.width - left)),
        height=max(0.0, min(box.height, rendered.height - top)),
    )


def crop_region(image: Image.Image, box: PixelBox, rendered: ImageSize) -> Image.Image:
    """Cut ``box`` (in rendered pixels) out of the full-resolution ``image``.

    The box is clamped to the rendered bounds first, then scaled to the
    image's own pixel grid.
    """
    clamped = clamp_to_rendered(box, rendered)
    if clamped.is_empty:
        raise CropError(f"crop region has no area: {clamped.as_tuple()}")

    sx = image.width / rendered.width
    sy = image.height / rendered.height
    left = round(clamped.left * sx)
    top = round(clamped.top * sy)
    right = min(image.width, round((clamped.left + clamped.width) * sx))
    bottom = min(image.height, round((clamped.top + clamped.height) * sy))
    if right <= left or bottom <= top:
        raise CropError("crop region collapses to zero pixels")

    return image.crop((left, top, right, bottom))


def encode_jpeg(image: Image.Image, quality: int = 90) -> str:
    """Base64 JPEG body (no ``data:`` prefix), as the image host expects."""
    if image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def crop_to_base64(image: Image.Image, box: PixelBox, rendered: ImageSize, quality: int = 90) -> str:
    cropped = crop_region(image, box, rendered)
    logger.debug("Cropped region %dx%d", cropped.width, cropped.height)
    return encode_jpeg(cropped, quality)
