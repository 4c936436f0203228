"""
ClarifaiProvider talking to the Clarifai v2 REST ``outputs`` endpoint.

Remote images are sent by URL, embedded ``data:image`` payloads as base64
bytes.  Regions are returned raw; filtering happens in the detection layer.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from src.detection.image_source import ImageSource, MalformedImageError
from src.detection.models import Region
from src.util.nonce import new_input_id

from ..config import settings
from ..provider_keys import get_clarifai_pat
from .base import DetectionProvider, ProviderError

logger = logging.getLogger(__name__)

# Clarifai status code for a successful prediction
STATUS_SUCCESS = 10000


class ClarifaiProvider(DetectionProvider):
    """Provider wrapper for Clarifai's face and general detection models."""

    def __init__(
        self,
        pat: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.pat = pat or get_clarifai_pat()
        self.base_url = settings.clarifai_base_url.rstrip("/")
        self.timeout = settings.provider_timeout
        self._transport = transport

    # ------------------------------------------------------------------
    # Public  Provider interface
    # ------------------------------------------------------------------

    async def predict_faces(self, source: ImageSource) -> list[Region]:
        return await self._predict(settings.clarifai_face_model, source, prefix="face")

    async def predict_objects(self, source: ImageSource) -> list[Region]:
        return await self._predict(settings.clarifai_object_model, source, prefix="object")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _model_url(self, model_id: str) -> str:
        return (
            f"{self.base_url}/users/{settings.clarifai_user_id}"
            f"/apps/{settings.clarifai_app_id}/models/{model_id}/outputs"
        )

    @staticmethod
    def _build_input(source: ImageSource, prefix: str) -> dict[str, Any]:
        """URL inputs and uploaded bytes need different request shapes."""
        if source.is_embedded:
            try:
                source.decode()
            except MalformedImageError as exc:
                raise ProviderError(str(exc)) from exc
            return {"id": new_input_id(prefix), "data": {"image": {"base64": source.base64_data}}}
        return {"data": {"image": {"url": source.url}}}

    async def _predict(self, model_id: str, source: ImageSource, *, prefix: str) -> list[Region]:
        payload = {"inputs": [self._build_input(source, prefix)]}
        headers = {"Authorization": f"Key {self.pat}", "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(self._model_url(model_id), json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Clarifai %s error: %s", model_id, exc)
            raise ProviderError(f"{model_id} prediction failed") from exc

        status = data.get("status") or {}
        if status.get("code", STATUS_SUCCESS) != STATUS_SUCCESS:
            logger.error("Clarifai %s returned status %s", model_id, status)
            raise ProviderError(f"{model_id} prediction failed: {status.get('description', 'unknown error')}")

        return self._to_regions(data)

    @staticmethod
    def _to_regions(data: dict) -> list[Region]:
        outputs = data.get("outputs") or []
        if not outputs:
            return []
        regions = (outputs[0].get("data") or {}).get("regions") or []
        return [Region.from_provider(r) for r in regions]
