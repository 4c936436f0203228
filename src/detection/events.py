"""Side-channel notifications emitted by detection.

Detection does not touch account data itself.  It publishes ``FacesDetected``
and whoever cares (the entry counter) subscribes.  Handlers run once; their
failures are logged and never reach the publisher.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacesDetected:
    actor_id: int | str
    face_count: int


Handler = Callable[[FacesDetected], Awaitable[None]]


class EventBus:
    """Minimal async publish/subscribe for ``FacesDetected``."""

    def __init__(self) -> None:
        self._handlers: list[Handler] = []

    def subscribe(self, handler: Handler) -> None:
        self._handlers.append(handler)

    async def publish(self, event: FacesDetected) -> None:
        for handler in self._handlers:
            try:
                await handler(event)
            except Exception as exc:  # noqa: BLE001 – notifications are fire-and-forget
                logger.error("Handler %r failed for %s: %s", handler, event, exc)


class EntryCounter(Protocol):
    async def increment_entries(self, actor_id: int | str) -> int: ...


class EntryCounterListener:
    """Bumps the actor's detection-entry counter once per ``FacesDetected``."""

    def __init__(self, counter: EntryCounter) -> None:
        self._counter = counter
        self.last_count: int | None = None

    async def __call__(self, event: FacesDetected) -> None:
        self.last_count = await self._counter.increment_entries(event.actor_id)
        logger.info("Actor %s now has %s entries", event.actor_id, self.last_count)
