"""
HTTP client for the lenslink gateway.

Covers every route a client needs: face/object/combined detection, visual
search and the per-actor entry counter.  Transport and HTTP errors surface as
``GatewayError`` so callers deal with a single failure type.
"""
import logging
from typing import Any

import httpx

from src.core.config import settings

from .image_source import ImageSource, MissingInputError
from .models import DetectedObject, DetectionResult, MarginBox
from .orchestrator import DetectionBackend

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when a gateway call fails (network error or non-2xx status)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize client for the lenslink gateway.

        Args:
            base_url: Gateway URL (defaults to settings.gateway_url)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        # Use provided base_url or get from centralized settings
        self.base_url = (base_url or settings.gateway_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.gateway_timeout
        self._transport = transport
        self.headers = {"Content-Type": "application/json"}

    async def _request(self, method: str, path: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("→ %s %s", method, url)
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.request(method, url, json=payload, headers=self.headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            detail = ""
            try:
                detail = e.response.json().get("detail", "")
            except ValueError:
                pass
            raise GatewayError(
                f"{method} {path} failed with {e.response.status_code}: {detail}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise GatewayError(f"{method} {path} failed: {e}") from e

    async def face_detect(self, source: ImageSource) -> list[MarginBox]:
        data = await self._request("POST", "/api/face-detect", {"image_url": source.value})
        return [MarginBox.model_validate(b) for b in data.get("boxes") or []]

    async def object_detect(self, source: ImageSource) -> list[DetectedObject]:
        data = await self._request("POST", "/api/object-detect", {"image_url": source.value})
        return [DetectedObject.from_wire(o) for o in data.get("objects") or []]

    async def combined_detect(self, source: ImageSource, crop_area: dict | None = None) -> DetectionResult:
        payload: dict[str, Any] = {"image_url": source.value}
        if crop_area is not None:
            payload["cropArea"] = crop_area
        data = await self._request("POST", "/api/combined-detect", payload)
        return DetectionResult(
            faces=[MarginBox.model_validate(b) for b in data.get("faces") or data.get("boxes") or []],
            objects=[DetectedObject.from_wire(o) for o in data.get("objects") or []],
        )

    async def search_image(self, image_url: str | None = None, query: str | None = None) -> dict:
        """
        Run a visual search.

        Reverse image search is used when ``image_url`` is given, a text
        image search on ``query`` otherwise.

        Returns:
            The provider's raw result dict (``visual_matches`` or ``images_results``)
        """
        if not image_url and not query:
            raise MissingInputError("imageUrl or query required")
        data = await self._request("POST", "/api/search-image", {"imageUrl": image_url, "query": query})
        return data.get("results") or {}

    async def increment_entries(self, actor_id: int | str) -> int:
        data = await self._request("PUT", "/image", {"id": actor_id})
        return int(data)


class GatewayBackend(DetectionBackend):
    """Detection backend that goes through the gateway.

    Single-kind detections use the per-kind routes; both kinds go through one
    combined call.  Objects arrive already filtered by the gateway.
    """

    def __init__(self, client: GatewayClient):
        self.client = client

    async def detect_faces(self, source: ImageSource) -> list[MarginBox]:
        return await self.client.face_detect(source)

    async def detect_objects(self, source: ImageSource) -> list[DetectedObject]:
        return await self.client.object_detect(source)

    async def detect_both(self, source: ImageSource) -> tuple[list[MarginBox], list[DetectedObject]]:
        result = await self.client.combined_detect(source)
        return result.faces, result.objects
