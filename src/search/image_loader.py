"""Fetch and decode a source image with a fixed upper bound on the wait."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from io import BytesIO
from pathlib import Path

import httpx
from PIL import Image, UnidentifiedImageError

from src.core.config import settings
from src.detection.image_source import ImageSource, MalformedImageError
from src.detection.models import ImageSize

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Could not load image. Please provide a direct image link."
DEFAULT_MAX_CACHED = 4


class ImageLoadError(Exception):
    """The image could not be fetched or decoded in time.

    ``user_message`` is what gets shown to the viewer, never the underlying
    network or decode error.
    """

    def __init__(self, detail: str):
        super().__init__(detail)
        self.user_message = LOAD_FAILED_MESSAGE


class ImageLoader:
    """Loads images once and hands back the decoded copy afterwards.

    Only the ``max_cached`` most recently used images are kept; older ones
    are evicted and reloaded on demand.
    """

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        max_cached: int = DEFAULT_MAX_CACHED,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.image_load_timeout
        self._transport = transport
        self.max_cached = max(1, max_cached)
        self._loaded: OrderedDict[str, Image.Image] = OrderedDict()

    def is_loaded(self, reference: str) -> bool:
        return reference in self._loaded

    @property
    def cached_count(self) -> int:
        return len(self._loaded)

    async def load(self, reference: str) -> Image.Image:
        """Return the decoded image for ``reference`` (URL, data URI or local path)."""
        if reference in self._loaded:
            self._loaded.move_to_end(reference)
            return self._loaded[reference]

        try:
            data = await asyncio.wait_for(self._read(reference), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise ImageLoadError(f"timed out after {self.timeout:.0f}s loading image") from exc

        image = self._decode(data)
        self.remember(reference, image)
        logger.debug("Loaded image %dx%d", image.width, image.height)
        return image

    def remember(self, reference: str, image: Image.Image) -> None:
        """Register an already decoded image, evicting the least recently used."""
        self._loaded[reference] = image
        self._loaded.move_to_end(reference)
        while len(self._loaded) > self.max_cached:
            evicted, _ = self._loaded.popitem(last=False)
            logger.debug("Evicted cached image %s", ImageSource(evicted).describe())

    async def natural_size(self, reference: str) -> ImageSize:
        image = await self.load(reference)
        return ImageSize(width=image.width, height=image.height)

    async def _read(self, reference: str) -> bytes:
        source = ImageSource.parse(reference)
        if source.is_embedded:
            try:
                return source.decode()
            except MalformedImageError as exc:
                raise ImageLoadError(str(exc)) from exc

        path = Path(reference)
        if not reference.startswith(("http://", "https://")):
            if path.is_file():
                return path.read_bytes()
            raise ImageLoadError(f"not a URL or existing file: {reference}")

        try:
            async with httpx.AsyncClient(transport=self._transport, follow_redirects=True) as client:
                response = await client.get(reference)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as exc:
            raise ImageLoadError(f"failed to fetch image: {exc}") from exc

    @staticmethod
    def _decode(data: bytes) -> Image.Image:
        try:
            image = Image.open(BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageLoadError(f"failed to decode image: {exc}") from exc
        return image
