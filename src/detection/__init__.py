"""Detection result filtering, normalisation and orchestration."""

from .events import EntryCounterListener, EventBus, FacesDetected
from .filters import BLOCKED_KEYWORDS, FilterStats, filter_objects, filter_regions, map_faces
from .image_source import ImageSource, MalformedImageError, MissingInputError
from .models import (
    BoxEncoding,
    Concept,
    CornerBox,
    DetectedObject,
    DetectionMode,
    DetectionResult,
    ImageSize,
    MarginBox,
    PixelBox,
    Region,
)
from .normalizer import OverlayBox, build_overlay, normalize, to_pixels
from .orchestrator import DetectionBackend, DetectionOrchestrator, ProviderBackend

__all__ = [
    # Models
    "BoxEncoding",
    "Concept",
    "CornerBox",
    "DetectedObject",
    "DetectionMode",
    "DetectionResult",
    "ImageSize",
    "MarginBox",
    "PixelBox",
    "Region",
    # Input
    "ImageSource",
    "MalformedImageError",
    "MissingInputError",
    # Filtering / normalisation
    "BLOCKED_KEYWORDS",
    "FilterStats",
    "filter_objects",
    "filter_regions",
    "map_faces",
    "normalize",
    "to_pixels",
    "build_overlay",
    "OverlayBox",
    # Orchestration
    "DetectionBackend",
    "DetectionOrchestrator",
    "ProviderBackend",
    "EventBus",
    "FacesDetected",
    "EntryCounterListener",
]
