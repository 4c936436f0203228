"""Click-a-box-to-search workflow.

Per click the session moves ``idle → cropping (crop mode only) → searching →
resolved | failed``.

* Cropping is best effort.  Any failure (no area, load/decode error, upload
  error) silently falls back to the original image URL.
* If a search made with the cropped image comes back without visual matches,
  the original image is searched exactly once more and that result is shown.
* A search error closes the session without a result panel.
* Each click gets a new, monotonically increasing session id.  Results that
  arrive for anything but the current session are dropped.
"""

from __future__ import annotations

import itertools
import logging
from typing import Protocol

from src.core.config import settings

from .cropper import crop_to_base64
from .image_loader import ImageLoader
from .models import BoxClick, SearchMode, SearchResults, SearchSession, SearchState
from .uploader import ImageHostUploader

logger = logging.getLogger(__name__)


class SearchClient(Protocol):
    async def search_image(self, image_url: str | None = None, query: str | None = None) -> dict: ...


class CropSearchWorkflow:
    def __init__(
        self,
        search_client: SearchClient,
        uploader: ImageHostUploader,
        loader: ImageLoader,
        mode: SearchMode | str = SearchMode.CROP,
        jpeg_quality: int | None = None,
    ) -> None:
        self.search_client = search_client
        self.uploader = uploader
        self.loader = loader
        self.mode = SearchMode(mode)
        self.jpeg_quality = jpeg_quality or settings.crop_jpeg_quality
        self._ids = itertools.count(1)
        self.session: SearchSession | None = None

    def set_mode(self, mode: SearchMode | str) -> None:
        self.mode = SearchMode(mode)

    def close(self) -> None:
        """Viewer closed the result panel; anything still in flight is dropped."""
        if self.session is not None:
            logger.debug("Closing search session %s", self.session.id)
        self.session = None

    def _is_current(self, session: SearchSession) -> bool:
        return self.session is not None and self.session.id == session.id

    def _discard(self, session: SearchSession) -> SearchSession:
        logger.info("Discarding stale results for search session %s", session.id)
        return session

    async def on_box_click(self, click: BoxClick, source_image_url: str) -> SearchSession:
        logger.info("Clicked %s box #%d %s (search mode: %s)", click.type, click.index, click.object_name or "", self.mode.value)

        session = SearchSession(
            id=next(self._ids),
            query=click.query,
            source_image_url=source_image_url,
            loading=True,
            open=True,
        )
        self.session = session

        search_url = source_image_url
        if self.mode is SearchMode.CROP:
            session.state = SearchState.CROPPING
            cropped_url = await self._crop_and_upload(click, source_image_url)
            if not self._is_current(session):
                return self._discard(session)
            if cropped_url:
                session.cropped_image_url = cropped_url
                search_url = cropped_url
        else:
            logger.info("Using full image (crop mode disabled)")

        session.state = SearchState.SEARCHING
        try:
            results = SearchResults(raw=await self.search_client.search_image(image_url=search_url))

            if session.cropped_image_url and not results.has_visual_matches:
                if not self._is_current(session):
                    return self._discard(session)
                logger.info("No results for cropped image, retrying with full image")
                results = SearchResults(raw=await self.search_client.search_image(image_url=source_image_url))
                session.fell_back = True
        except Exception as exc:  # noqa: BLE001 – any search failure ends the session
            if not self._is_current(session):
                return self._discard(session)
            logger.error("Search error: %s", exc)
            session.state = SearchState.FAILED
            session.error = str(exc)
            session.loading = False
            session.open = False
            return session

        if not self._is_current(session):
            return self._discard(session)

        session.results = results
        session.state = SearchState.RESOLVED
        session.loading = False
        return session

    async def _crop_and_upload(self, click: BoxClick, source_image_url: str) -> str | None:
        try:
            image = await self.loader.load(source_image_url)
            payload = crop_to_base64(image, click.box, click.rendered_size, self.jpeg_quality)
            url = await self.uploader.upload_base64(payload)
        except Exception as exc:  # noqa: BLE001 – any crop failure falls back to the full image
            logger.warning("Cropping failed, using full image: %s", exc)
            return None
        logger.info("Using cropped image: %s", url)
        return url
