"""CLI command for searching the web for a detected face or object."""

import asyncio
import logging
import sys

from ..core.config import settings
from ..detection.gateway_client import GatewayClient, GatewayError
from ..detection.models import DetectionMode
from ..detection.normalizer import build_overlay
from ..search.image_loader import ImageLoader, ImageLoadError
from ..search.models import BoxClick, SearchMode, SearchState
from ..search.uploader import ImageHostUploader
from ..search.workflow import CropSearchWorkflow
from .detect import configure_logging, detect_image, prepare, print_overlay

logger = logging.getLogger(__name__)


async def _run(reference: str, box_type: str, index: int, mode: DetectionMode, search_mode: SearchMode):
    loader = ImageLoader()
    uploader = ImageHostUploader()
    client = GatewayClient()

    try:
        image_url, size = await prepare(reference, loader, uploader)
        result = await detect_image(image_url, mode, client)
    except ImageLoadError as e:
        print(f"Error: {e.user_message}")
        sys.exit(1)
    except GatewayError as e:
        print(f"Error: detection failed ({e})")
        sys.exit(1)

    overlay = build_overlay(result, size)
    print_overlay(overlay)

    target = next((b for b in overlay if b.type == box_type and b.index == index), None)
    if target is None:
        print(f"Error: no {box_type} box #{index}")
        sys.exit(1)

    workflow = CropSearchWorkflow(client, uploader, loader, mode=search_mode)
    click = BoxClick(
        type=target.type,
        index=target.index,
        box=target.box,
        rendered_size=size,
        object_name=target.name,
    )
    session = await workflow.on_box_click(click, image_url)

    if session.state is SearchState.FAILED:
        print("Error: search failed")
        sys.exit(1)

    print()
    print(f"🔍 Search Results for \"{session.query}\"")
    if session.cropped_image_url:
        print(f"   searched with cropped image{' (fell back to full image)' if session.fell_back else ''}")
    cards = session.results.cards(settings.max_result_cards) if session.results else []
    if not cards:
        print("No results found")
    for card in cards:
        source = f" – {card.source}" if card.source else ""
        print(f"  • {card.title}{source}\n    {card.link}")
    return session


def main(image: str, box_type: str, index: int, mode: str | None = None, search_mode: str | None = None):
    """Main entry point.

    Args:
        image: Image URL, data URI or local file
        box_type: "face" or "object"
        index: Index of the box within its kind
        mode: Detection mode used to find the boxes
        search_mode: "crop" or "full"
    """
    configure_logging()
    return asyncio.run(
        _run(
            image,
            box_type,
            index,
            DetectionMode(mode or settings.detection_mode),
            SearchMode(search_mode or settings.search_mode),
        )
    )
