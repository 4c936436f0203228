"""Crop-then-search workflow for clicked detection boxes."""

from .cropper import CropError, crop_region, crop_to_base64
from .image_loader import LOAD_FAILED_MESSAGE, ImageLoader, ImageLoadError
from .models import BoxClick, ResultCard, SearchMode, SearchResults, SearchSession, SearchState
from .uploader import ImageHostUploader, UploadError
from .workflow import CropSearchWorkflow

__all__ = [
    "BoxClick",
    "CropError",
    "CropSearchWorkflow",
    "ImageHostUploader",
    "ImageLoadError",
    "ImageLoader",
    "LOAD_FAILED_MESSAGE",
    "ResultCard",
    "SearchMode",
    "SearchResults",
    "SearchSession",
    "SearchState",
    "UploadError",
    "crop_region",
    "crop_to_base64",
]
