# Expose the public provider API for detection and search.

from .base import (
    CombinedDetectRequest,
    DetectionProvider,
    DetectRequest,
    EntryRequest,
    ProviderError,
    SearchProvider,
    SearchRequest,
)
from .clarifai_provider import ClarifaiProvider
from .serpapi_provider import SerpApiProvider

__all__ = [
    "DetectionProvider",
    "SearchProvider",
    "ProviderError",
    "DetectRequest",
    "CombinedDetectRequest",
    "SearchRequest",
    "EntryRequest",
    "ClarifaiProvider",
    "SerpApiProvider",
]
