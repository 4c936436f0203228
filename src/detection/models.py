"""Data model for detection results.

Two box encodings arrive from the detection boundary and must never be mixed:

* ``MarginBox`` – ``top_row`` / ``left_col`` are fractional distances from the
  top / left edge, ``bottom_row`` / ``right_col`` are fractional *margins*
  measured from the bottom / right edge.
* ``CornerBox`` – all four values are direct corner coordinates expressed as
  fractions of the image dimensions.

Only ``src.detection.normalizer`` turns either of them into a ``PixelBox``;
everything downstream of the normaliser works in pixels.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BoxEncoding(str, Enum):
    """Which geometry a raw box uses."""
    MARGIN = "margin"
    CORNER = "corner"
    PIXEL = "pixel"


class DetectionMode(str, Enum):
    FACES = "faces"
    OBJECTS = "objects"
    BOTH = "both"

    @property
    def includes_faces(self) -> bool:
        return self in (DetectionMode.FACES, DetectionMode.BOTH)

    @property
    def includes_objects(self) -> bool:
        return self in (DetectionMode.OBJECTS, DetectionMode.BOTH)


def _zero_if_missing(v: Any) -> float:
    # Partial provider payloads leave fields out or null; treat them as 0.
    if v is None:
        return 0.0
    return float(v)


class _FractionBox(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    top_row: float = Field(0.0, alias="topRow")
    left_col: float = Field(0.0, alias="leftCol")
    bottom_row: float = Field(0.0, alias="bottomRow")
    right_col: float = Field(0.0, alias="rightCol")

    @field_validator("top_row", "left_col", "bottom_row", "right_col", mode="before")
    @classmethod
    def _default_zero(cls, v):  # noqa: D401
        return _zero_if_missing(v)

    def to_wire(self) -> dict[str, float]:
        """Snake-case dict as sent over the detection boundary."""
        return self.model_dump(by_alias=False, exclude={"encoding"})


class MarginBox(_FractionBox):
    """Margin-form box as produced by face detection."""
    encoding: Literal[BoxEncoding.MARGIN] = BoxEncoding.MARGIN


class CornerBox(_FractionBox):
    """Corner-fraction box as produced by object detection."""
    encoding: Literal[BoxEncoding.CORNER] = BoxEncoding.CORNER

    def to_margins(self) -> MarginBox:
        return MarginBox(
            top_row=self.top_row,
            left_col=self.left_col,
            bottom_row=1.0 - self.bottom_row,
            right_col=1.0 - self.right_col,
        )


class PixelBox(BaseModel):
    """Rectangle in pixels relative to the rendered image."""
    model_config = ConfigDict(frozen=True)

    encoding: Literal[BoxEncoding.PIXEL] = BoxEncoding.PIXEL
    left: float = 0.0
    top: float = 0.0
    width: float = Field(0.0, ge=0.0)
    height: float = Field(0.0, ge=0.0)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.left, self.top, self.width, self.height)


RawBox = Union[MarginBox, CornerBox, PixelBox]


class ImageSize(BaseModel):
    """Width/height pair for an image as rendered (or as decoded)."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)

    @classmethod
    def for_display(cls, natural_width: int, natural_height: int, display_width: int) -> "ImageSize":
        """Size of an image shown at a fixed width with its aspect ratio kept."""
        if natural_width <= 0 or natural_height <= 0:
            raise ValueError("natural size must be positive")
        height = max(1, round(natural_height * display_width / natural_width))
        return cls(width=display_width, height=height)


class Concept(BaseModel):
    name: str
    value: float = Field(0.0, description="Confidence in [0, 1]")

    @field_validator("value", mode="before")
    @classmethod
    def _default_zero(cls, v):
        return _zero_if_missing(v)


class Region(BaseModel):
    """One detected area as returned by the vision provider.

    Concepts are kept in provider order, which is highest confidence first.
    """
    box: CornerBox = Field(default_factory=CornerBox)
    concepts: list[Concept] = Field(default_factory=list)

    @property
    def top_concept(self) -> Concept | None:
        return self.concepts[0] if self.concepts else None

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> "Region":
        """Build a region from a Clarifai ``regions[]`` entry.

        Missing ``region_info`` / ``bounding_box`` / ``concepts`` yield a zero
        box and no concepts rather than an error.
        """
        bbox = (payload.get("region_info") or {}).get("bounding_box") or {}
        concepts = (payload.get("data") or {}).get("concepts") or []
        return cls(
            box=CornerBox(
                top_row=bbox.get("top_row"),
                left_col=bbox.get("left_col"),
                bottom_row=bbox.get("bottom_row"),
                right_col=bbox.get("right_col"),
            ),
            concepts=[Concept(name=c.get("name", ""), value=c.get("value")) for c in concepts],
        )


class DetectedObject(BaseModel):
    name: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    box: CornerBox

    def to_wire(self) -> dict[str, Any]:
        return {"name": self.name, "confidence": self.confidence, **self.box.to_wire()}

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> "DetectedObject":
        return cls(
            name=payload.get("name", ""),
            confidence=payload.get("confidence") or 0.0,
            box=CornerBox(
                top_row=payload.get("top_row"),
                left_col=payload.get("left_col"),
                bottom_row=payload.get("bottom_row"),
                right_col=payload.get("right_col"),
            ),
        )


class DetectionResult(BaseModel):
    """Faces (margin form) and filtered objects for one image."""
    faces: list[MarginBox] = Field(default_factory=list)
    objects: list[DetectedObject] = Field(default_factory=list)

    @property
    def faces_detected(self) -> int:
        return len(self.faces)

    @property
    def objects_detected(self) -> int:
        return len(self.objects)

    def to_wire(self) -> dict[str, Any]:
        faces = [f.to_wire() for f in self.faces]
        # ``boxes`` is kept as an alias of ``faces`` for older clients.
        return {"faces": faces, "boxes": faces, "objects": [o.to_wire() for o in self.objects]}
