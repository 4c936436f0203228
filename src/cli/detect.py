"""CLI command for detecting faces and objects in one image."""

import asyncio
import logging
import sys
from pathlib import Path

from ..core.config import settings
from ..detection.events import EntryCounterListener, EventBus
from ..detection.gateway_client import GatewayBackend, GatewayClient, GatewayError
from ..detection.image_source import ImageSource
from ..detection.models import DetectionMode, DetectionResult, ImageSize
from ..detection.normalizer import OverlayBox, build_overlay
from ..detection.orchestrator import DetectionOrchestrator
from ..search.image_loader import ImageLoader, ImageLoadError
from ..search.uploader import ImageHostUploader, UploadError

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=settings.lenslink_log_level.upper(),
        format='%(message)s'  # Simple format for CLI output
    )


async def resolve_image(reference: str, uploader: ImageHostUploader) -> str:
    """Turn a local file into something the gateway can fetch.

    Local files go to the image host when a key is configured and are sent
    as an embedded ``data:`` URI otherwise.  URLs pass through unchanged.
    """
    path = Path(reference)
    if not path.is_file():
        return reference

    data = path.read_bytes()
    if uploader.configured:
        try:
            return await uploader.upload_bytes(data)
        except UploadError as e:
            logger.warning("Upload failed (%s); sending image inline", e)
    suffix = path.suffix.lower().lstrip(".") or "jpeg"
    mime = "image/jpeg" if suffix in ("jpg", "jpeg") else f"image/{suffix}"
    return ImageSource.embed(data, mime)


async def prepare(reference: str, loader: ImageLoader, uploader: ImageHostUploader) -> tuple[str, ImageSize]:
    """Load the image (bounded wait) and work out the size it renders at."""
    natural = await loader.natural_size(reference)
    image_url = await resolve_image(reference, uploader)
    if image_url != reference:
        # Reuse the decoded copy for later crops.
        loader.remember(image_url, await loader.load(reference))
    return image_url, ImageSize.for_display(natural.width, natural.height, settings.render_width)


async def detect_image(
    image_url: str,
    mode: DetectionMode,
    client: GatewayClient,
    user_id: str | None = None,
) -> DetectionResult:
    events = EventBus()
    if user_id is not None:
        events.subscribe(EntryCounterListener(client))
    orchestrator = DetectionOrchestrator(GatewayBackend(client), events)
    return await orchestrator.detect(mode, image_url, actor_id=user_id)


def print_overlay(overlay: list[OverlayBox]) -> None:
    faces = [b for b in overlay if b.type == "face"]
    objects = [b for b in overlay if b.type == "object"]
    print(f"👤 {len(faces)} face(s) • 🔍 {len(objects)} object(s)")
    for b in overlay:
        left, top, width, height = b.box.as_tuple()
        print(f"  [{b.type} #{b.index}] {b.label:<24} left={left:.0f} top={top:.0f} {width:.0f}x{height:.0f}")


async def _run(reference: str, mode: DetectionMode, user_id: str | None):
    loader = ImageLoader()
    uploader = ImageHostUploader()
    client = GatewayClient()

    try:
        image_url, size = await prepare(reference, loader, uploader)
    except ImageLoadError as e:
        logger.debug("Image load failed: %s", e)
        print(f"Error: {e.user_message}")
        sys.exit(1)

    try:
        result = await detect_image(image_url, mode, client, user_id)
    except GatewayError as e:
        print(f"Error: detection failed ({e})")
        sys.exit(1)

    print_overlay(build_overlay(result, size))
    return result


def main(image: str, mode: str | None = None, user_id: str | None = None):
    """Main entry point.

    Args:
        image: Image URL, data URI or local file
        mode: faces, objects or both (defaults to settings.detection_mode)
        user_id: Actor whose entry counter is bumped when faces are found
    """
    configure_logging()
    return asyncio.run(_run(image, DetectionMode(mode or settings.detection_mode), user_id))
