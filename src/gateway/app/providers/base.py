from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

from src.detection.image_source import ImageSource
from src.detection.models import Region


class ProviderError(Exception):
    """Raised when an upstream provider call fails."""
    pass


class DetectRequest(BaseModel):
    """Body of the detection routes."""
    image_url: str | None = None


class CombinedDetectRequest(DetectRequest):
    model_config = ConfigDict(populate_by_name=True)

    # Accepted for compatibility; detection always runs on the whole image.
    crop_area: dict | None = Field(None, alias="cropArea")


class SearchRequest(BaseModel):
    """Body of the search route: reverse search on imageUrl, else text search on query."""
    model_config = ConfigDict(populate_by_name=True)

    image_url: str | None = Field(None, alias="imageUrl")
    query: str | None = None


class EntryRequest(BaseModel):
    id: int | str


class DetectionProvider(ABC):
    """Base class for vision providers returning raw regions."""

    @abstractmethod
    async def predict_faces(self, source: ImageSource) -> list[Region]:
        """Run face detection"""
        pass

    @abstractmethod
    async def predict_objects(self, source: ImageSource) -> list[Region]:
        """Run general object detection"""
        pass


class SearchProvider(ABC):
    """Base class for visual search providers."""

    @abstractmethod
    async def reverse_search(self, image_url: str) -> dict:
        """Search for pages/images visually similar to ``image_url``"""
        pass

    @abstractmethod
    async def text_search(self, query: str) -> dict:
        """Image search by text query"""
        pass
