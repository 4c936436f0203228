import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from src.detection.image_source import ImageSource, MissingInputError
from src.detection.models import DetectionMode, DetectionResult
from src.detection.orchestrator import DetectionOrchestrator, ProviderBackend

from .config import settings
from .entries import entry_store
from .middleware.logging import LoggingMiddleware, log_provider_request, log_provider_response
from .provider_keys import ProviderKeyError
from .providers import (
    ClarifaiProvider,
    CombinedDetectRequest,
    DetectRequest,
    EntryRequest,
    ProviderError,
    SearchRequest,
    SerpApiProvider,
)

# Provider instances, keyed by role ("detection", "search")
providers = {}

# Set up logger
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    await entry_store.connect()

    try:
        providers["detection"] = ClarifaiProvider()
    except ProviderKeyError as e:
        logger.warning("Detection routes disabled: %s", e)
    try:
        providers["search"] = SerpApiProvider()
    except ProviderKeyError as e:
        logger.warning("Search route disabled: %s", e)

    # Fail-fast: without any provider the gateway is unusable.
    if not providers:
        logger.error(
            "Fatal: no provider configured. Set CLARIFAI_PAT and/or SERP_API_KEY."
        )
        raise RuntimeError("No provider configured for lenslink gateway")

    yield

    # Shutdown
    await entry_store.disconnect()


app = FastAPI(
    title="lenslink gateway",
    description="Face/object detection and visual search for clicked image regions",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)
# Add logging middleware
app.add_middleware(LoggingMiddleware)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse(model, body: dict):
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _source(image_url: str | None) -> ImageSource:
    # Rejected before any provider is touched.
    try:
        return ImageSource.parse(image_url)
    except MissingInputError as e:
        raise HTTPException(status_code=400, detail=str(e))


async def _detect(request: Request, mode: DetectionMode, source: ImageSource) -> DetectionResult:
    provider = providers.get("detection")
    if not provider:
        raise HTTPException(status_code=500, detail="Detection provider not configured")

    request_id = getattr(request.state, "request_id", "-")
    log_provider_request(request_id, "clarifai", f"detect:{mode.value}", source.describe())

    orchestrator = DetectionOrchestrator(
        ProviderBackend(provider, min_confidence=settings.min_object_confidence)
    )
    start_time = time.time()
    try:
        result = await orchestrator.detect(mode, source)
    except ProviderError as e:
        raise HTTPException(status_code=500, detail=f"Provider error: {e!s}")

    log_provider_response(
        request_id,
        "clarifai",
        f"detect:{mode.value}",
        {"faces": result.faces_detected, "objects": result.objects_detected},
        time.time() - start_time,
    )
    return result


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/api/health")
async def health():
    """Health check endpoint."""
    healthy = bool(providers)

    payload = {
        "ok": healthy,
        "message": "Server is running" if healthy else "No provider configured",
        "env": settings.environment,
        "providers": sorted(providers.keys()),
    }

    if not healthy:
        # Surface the problem clearly to callers (e.g., readiness probes).
        raise HTTPException(status_code=503, detail=payload)

    return payload


@app.post("/api/face-detect")
async def face_detect(request: Request, body: dict):
    """Face boxes in margin form, unfiltered."""
    detect_request = _parse(DetectRequest, body)
    source = _source(detect_request.image_url)
    result = await _detect(request, DetectionMode.FACES, source)
    return {"boxes": [box.to_wire() for box in result.faces]}


@app.post("/api/object-detect")
async def object_detect(request: Request, body: dict):
    """Confident, non-human objects in corner-fraction form."""
    detect_request = _parse(DetectRequest, body)
    source = _source(detect_request.image_url)
    result = await _detect(request, DetectionMode.OBJECTS, source)
    return {"objects": [obj.to_wire() for obj in result.objects]}


@app.post("/api/combined-detect")
async def combined_detect(request: Request, body: dict):
    """Faces and objects from two concurrent provider calls."""
    detect_request = _parse(CombinedDetectRequest, body)
    source = _source(detect_request.image_url)
    if detect_request.crop_area is not None:
        logger.debug("cropArea supplied; detection still runs on the full image")
    result = await _detect(request, DetectionMode.BOTH, source)
    return result.to_wire()


@app.post("/api/search-image")
async def search_image(request: Request, body: dict):
    """Reverse image search when imageUrl is given, text image search otherwise."""
    search_request = _parse(SearchRequest, body)
    if not search_request.image_url and not search_request.query:
        raise HTTPException(status_code=400, detail="imageUrl or query required")

    provider = providers.get("search")
    if not provider:
        raise HTTPException(status_code=500, detail="SERP_API_KEY not configured")

    request_id = getattr(request.state, "request_id", "-")
    start_time = time.time()
    try:
        if search_request.image_url:
            log_provider_request(request_id, "serpapi", "reverse_search", search_request.image_url)
            data = await provider.reverse_search(search_request.image_url)
        else:
            log_provider_request(request_id, "serpapi", "text_search", search_request.query)
            data = await provider.text_search(search_request.query)
    except ProviderError as e:
        raise HTTPException(status_code=500, detail=f"Search failed: {e!s}")

    log_provider_response(
        request_id,
        "serpapi",
        "search",
        {
            "visual_matches": len(data.get("visual_matches") or []),
            "images_results": len(data.get("images_results") or []),
        },
        time.time() - start_time,
    )
    return {"results": data}


@app.put("/image")
async def increment_entries(body: dict):
    """Bump the actor's detection entry counter and return the new value."""
    try:
        entry_request = EntryRequest.model_validate(body)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Unable to get entries")
    return await entry_store.increment(entry_request.id)


def run(host: str | None = None, port: int | None = None) -> None:
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="[%(name)s] %(levelname)s: %(message)s",
    )
    host = host or settings.lenslink_gateway_host
    port = port or settings.lenslink_gateway_port
    logger.info("Starting lenslink gateway on %s:%s (CORS allowed for %s)", host, port, settings.frontend_url)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
