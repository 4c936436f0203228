"""SerpApi search: Google Lens for reverse image search, Google Images for text."""
from __future__ import annotations

import logging

import httpx

from ..config import settings
from ..provider_keys import get_serp_api_key
from .base import ProviderError, SearchProvider

logger = logging.getLogger(__name__)


class SerpApiProvider(SearchProvider):
    def __init__(
        self,
        api_key: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or get_serp_api_key()
        self.base_url = settings.serpapi_base_url
        self.timeout = settings.provider_timeout
        self._transport = transport

    async def reverse_search(self, image_url: str) -> dict:
        return await self._search({"engine": "google_lens", "url": image_url})

    async def text_search(self, query: str) -> dict:
        return await self._search({"engine": "google", "q": query, "tbm": "isch"})

    async def _search(self, params: dict) -> dict:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.get(self.base_url, params={**params, "api_key": self.api_key})
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("SerpApi %s error: %s", params.get("engine"), exc)
            raise ProviderError("search failed") from exc
