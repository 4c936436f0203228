import asyncio
import json
import logging
import os
from pathlib import Path

# Local
from .config import settings

logger = logging.getLogger("gateway.entries")


class EntryStore:
    """Filesystem-backed per-actor detection entry counters (single-node)."""

    def __init__(self, path: str | Path | None = None):
        self.path: Path = Path(path or settings.entry_store_path).expanduser()
        self._lock = asyncio.Lock()
        self._counts: dict[str, int] = {}
        self.enabled = True  # False once the backing file proved unusable

    async def connect(self):
        """Create the store directory and load existing counters."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists():
                with self.path.open("r", encoding="utf-8") as f:
                    self._counts = {str(k): int(v) for k, v in json.load(f).items()}
            logger.info("Entry counters persisted to %s (%d actors)", self.path, len(self._counts))
        except (OSError, ValueError) as exc:
            self.enabled = False
            logger.error("Failed to open entry store %s (%s) – counters kept in memory only", self.path, exc)

    async def disconnect(self):
        # Every increment is written through; nothing to flush.
        return

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, actor_id: int | str) -> int:
        return self._counts.get(str(actor_id), 0)

    async def increment(self, actor_id: int | str) -> int:
        """Increment the actor's counter by one and return the new value."""
        key = str(actor_id)
        async with self._lock:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
            self._write()
        return count

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _write(self) -> None:
        if not self.enabled:
            return
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(self._counts, f)
            os.replace(tmp, self.path)
        except OSError as exc:
            # Individual write failures may be transient; keep serving from memory.
            logger.error("Entry store write error for %s: %s", self.path, exc)


# Global store instance
entry_store = EntryStore()
