"""State carried by one click-to-search interaction."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from src.detection.models import ImageSize, PixelBox

FACE_QUERY = "Similar Face"


class SearchMode(str, Enum):
    CROP = "crop"
    FULL = "full"


class SearchState(str, Enum):
    IDLE = "idle"
    CROPPING = "cropping"
    SEARCHING = "searching"
    RESOLVED = "resolved"
    FAILED = "failed"


class BoxClick(BaseModel):
    """What the viewer clicked: which box, of which kind, on which rendering."""
    type: Literal["face", "object"]
    index: int = Field(..., ge=0)
    box: PixelBox
    rendered_size: ImageSize
    object_name: str | None = None

    @property
    def query(self) -> str:
        if self.type == "face":
            return FACE_QUERY
        return self.object_name or ""


class ResultCard(BaseModel):
    title: str = ""
    link: str = ""
    thumbnail: str = ""
    source: str | None = None


class SearchResults(BaseModel):
    """Raw search provider payload with the two result lists we display."""
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def visual_matches(self) -> list[dict]:
        return self.raw.get("visual_matches") or []

    @property
    def images_results(self) -> list[dict]:
        return self.raw.get("images_results") or []

    @property
    def has_visual_matches(self) -> bool:
        return bool(self.visual_matches)

    def cards(self, limit: int = 12) -> list[ResultCard]:
        """Visual matches when there are any, otherwise plain image results."""
        items = self.visual_matches or self.images_results
        return [
            ResultCard(
                title=item.get("title") or "",
                link=item.get("link") or "",
                thumbnail=item.get("thumbnail") or "",
                source=item.get("source"),
            )
            for item in items[:limit]
        ]


class SearchSession(BaseModel):
    id: int
    query: str
    source_image_url: str
    cropped_image_url: str | None = None
    results: SearchResults | None = None
    state: SearchState = SearchState.IDLE
    loading: bool = False
    open: bool = True
    fell_back: bool = False
    error: str | None = None
