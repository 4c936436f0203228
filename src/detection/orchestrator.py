"""Run face and/or object detection for one image and merge the results."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Iterable, Protocol

from .events import EventBus, FacesDetected
from .filters import BLOCKED_KEYWORDS, DEFAULT_MIN_CONFIDENCE, filter_objects, map_faces
from .image_source import ImageSource
from .models import DetectedObject, DetectionMode, DetectionResult, MarginBox, Region

logger = logging.getLogger(__name__)


class DetectionBackend(ABC):
    """Where detection requests actually go."""

    @abstractmethod
    async def detect_faces(self, source: ImageSource) -> list[MarginBox]:
        pass

    @abstractmethod
    async def detect_objects(self, source: ImageSource) -> list[DetectedObject]:
        pass

    async def detect_both(self, source: ImageSource) -> tuple[list[MarginBox], list[DetectedObject]]:
        """Faces and objects together; by default the two calls run concurrently."""
        faces, objects = await asyncio.gather(
            self.detect_faces(source),
            self.detect_objects(source),
        )
        return faces, objects


class RegionProvider(Protocol):
    async def predict_faces(self, source: ImageSource) -> list[Region]: ...

    async def predict_objects(self, source: ImageSource) -> list[Region]: ...


class ProviderBackend(DetectionBackend):
    """Backend that talks to the vision provider and filters its raw regions.

    This is where provider responses are received, so the object filter runs
    here.  Faces are passed through unfiltered.
    """

    def __init__(
        self,
        provider: RegionProvider,
        *,
        min_confidence: float = DEFAULT_MIN_CONFIDENCE,
        blocked_keywords: Iterable[str] = BLOCKED_KEYWORDS,
    ) -> None:
        self._provider = provider
        self._min_confidence = min_confidence
        self._blocked_keywords = tuple(blocked_keywords)

    async def detect_faces(self, source: ImageSource) -> list[MarginBox]:
        return map_faces(await self._provider.predict_faces(source))

    async def detect_objects(self, source: ImageSource) -> list[DetectedObject]:
        regions = await self._provider.predict_objects(source)
        return filter_objects(regions, self._min_confidence, self._blocked_keywords)


class DetectionOrchestrator:
    """Issue the request(s) for a detection mode and build a ``DetectionResult``.

    In ``both`` mode the face and object calls run concurrently and a failure
    of either one fails the whole detection; no partial result is reported.
    When faces were found for a known actor a single ``FacesDetected`` event
    is published.
    """

    def __init__(self, backend: DetectionBackend, events: EventBus | None = None) -> None:
        self.backend = backend
        self.events = events

    async def detect(
        self,
        mode: DetectionMode | str,
        image_source: ImageSource | str | None,
        actor_id: int | str | None = None,
    ) -> DetectionResult:
        mode = DetectionMode(mode)
        source = image_source if isinstance(image_source, ImageSource) else ImageSource.parse(image_source)
        logger.info("Detecting %s in: %s", mode.value, source.describe())

        faces: list[MarginBox] = []
        objects: list[DetectedObject] = []
        try:
            if mode is DetectionMode.FACES:
                faces = await self.backend.detect_faces(source)
            elif mode is DetectionMode.OBJECTS:
                objects = await self.backend.detect_objects(source)
            else:
                faces, objects = await self.backend.detect_both(source)
        except Exception as exc:
            logger.error("%s detection failed: %s", mode.value, exc)
            raise

        result = DetectionResult(faces=faces, objects=objects)
        logger.info("Found %d faces and %d objects", result.faces_detected, result.objects_detected)

        if mode.includes_faces and result.faces and actor_id is not None and self.events is not None:
            await self.events.publish(FacesDetected(actor_id=actor_id, face_count=result.faces_detected))

        return result
