"""Image host client used for cropped regions and local files."""

from __future__ import annotations

import base64
import logging

import httpx

from src.core.config import settings

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Raised when the image host rejects or fails an upload."""
    pass


class ImageHostUploader:
    """Uploads base64 image payloads and returns the hosted URL."""

    def __init__(
        self,
        api_key: str | None = None,
        upload_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.imgbb_api_key
        self.upload_url = upload_url or settings.imgbb_upload_url
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def upload_base64(self, image_b64: str) -> str:
        if not self.api_key:
            raise UploadError("image host API key not configured (IMGBB_API_KEY)")

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(
                    self.upload_url,
                    params={"key": self.api_key},
                    files={"image": (None, image_b64)},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UploadError(f"upload failed: {exc}") from exc

        if not data.get("success"):
            raise UploadError("image host reported failure")
        url = (data.get("data") or {}).get("url")
        if not url:
            raise UploadError("image host response has no url")
        logger.info("Uploaded image to %s", url)
        return url

    async def upload_bytes(self, data: bytes) -> str:
        return await self.upload_base64(base64.b64encode(data).decode("ascii"))
