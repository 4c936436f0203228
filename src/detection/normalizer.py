"""Convert raw detection boxes into pixel rectangles.

The caller passes the size the image is rendered at; nothing here looks up
display state on its own.  When that size is not known yet (the image has not
been rendered) the result is simply empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping

from .models import (
    BoxEncoding,
    CornerBox,
    DetectionResult,
    ImageSize,
    MarginBox,
    PixelBox,
    RawBox,
)

PIXEL_DECIMALS = 2

_BOX_TYPES = {
    BoxEncoding.MARGIN: MarginBox,
    BoxEncoding.CORNER: CornerBox,
    BoxEncoding.PIXEL: PixelBox,
}


def _coerce(box: RawBox | Mapping[str, Any], encoding: BoxEncoding | None) -> RawBox:
    if isinstance(box, (MarginBox, CornerBox, PixelBox)):
        if encoding is not None and box.encoding != encoding:
            raise ValueError(
                f"box encoded as {box.encoding.value} passed where {encoding.value} was expected"
            )
        return box
    if encoding is None:
        raise ValueError("encoding is required to interpret plain dict boxes")
    return _BOX_TYPES[encoding].model_validate(dict(box))


def _clamp(left: float, top: float, width: float, height: float, w: float, h: float) -> PixelBox:
    left = max(0.0, left)
    top = max(0.0, top)
    width = max(0.0, min(width, w - left))
    height = max(0.0, min(height, h - top))
    return PixelBox(
        left=round(left, PIXEL_DECIMALS),
        top=round(top, PIXEL_DECIMALS),
        width=round(width, PIXEL_DECIMALS),
        height=round(height, PIXEL_DECIMALS),
    )


def to_pixels(box: RawBox, image_width: float, image_height: float) -> PixelBox:
    """Resolve a single box against a rendered ``image_width`` x ``image_height``."""
    w, h = float(image_width), float(image_height)

    if isinstance(box, MarginBox):
        left = box.left_col * w
        top = box.top_row * h
        width = w - left - box.right_col * w
        height = h - top - box.bottom_row * h
    elif isinstance(box, CornerBox):
        left = box.left_col * w
        top = box.top_row * h
        width = (box.right_col - box.left_col) * w
        height = (box.bottom_row - box.top_row) * h
    else:
        left, top, width, height = box.as_tuple()

    return _clamp(left, top, width, height, w, h)


def normalize(
    raw_boxes: Iterable[RawBox | Mapping[str, Any]],
    encoding: BoxEncoding | None,
    image_width: float | None,
    image_height: float | None,
) -> list[PixelBox]:
    """Normalise every box of one encoding into a ``PixelBox``.

    ``encoding`` is required for plain dicts and, when given, is checked
    against already-parsed boxes so the two encodings never get mixed.
    """
    if not image_width or not image_height or image_width <= 0 or image_height <= 0:
        return []
    return [to_pixels(_coerce(b, encoding), image_width, image_height) for b in raw_boxes]


@dataclass(frozen=True)
class OverlayBox:
    """A clickable rectangle drawn over the rendered image."""
    type: Literal["face", "object"]
    index: int
    box: PixelBox
    name: str | None = None
    confidence: float | None = None

    @property
    def label(self) -> str:
        if self.type == "face":
            return f"Face {self.index + 1}"
        return f"{self.name} {round((self.confidence or 0) * 100)}%"


def build_overlay(result: DetectionResult, size: ImageSize | None) -> list[OverlayBox]:
    """Face boxes first, then object boxes, each indexed within its own kind."""
    if size is None:
        return []

    faces = normalize(result.faces, BoxEncoding.MARGIN, size.width, size.height)
    objects = normalize([o.box for o in result.objects], BoxEncoding.CORNER, size.width, size.height)

    overlay = [OverlayBox(type="face", index=i, box=box) for i, box in enumerate(faces)]
    overlay.extend(
        OverlayBox(type="object", index=i, box=box, name=obj.name, confidence=obj.confidence)
        for i, (obj, box) in enumerate(zip(result.objects, objects))
    )
    return overlay
