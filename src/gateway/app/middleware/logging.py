"""Request / response logging utilities for the lenslink gateway.

The gateway only needs **very** light-weight structured logging so we keep the
implementation minimal to avoid introducing additional runtime dependencies.
The middleware assigns a short *request_id* to every incoming HTTP request so
that individual log lines can be correlated when several detections and
searches are in flight at once.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("gateway")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Attach a short *request_id* and log basic request / response metadata."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:  # noqa: D401  (simple dispatch signature)
        # Uniqueness for the lifetime of the process is all we need here.
        request_id = uuid.uuid4().hex[:8]
        request.state.request_id = request_id

        started = time.time()
        status: int | str = "error"
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            duration_ms = (time.time() - started) * 1_000
            logger.info(
                "[request %s] %s %s → %s (%.1f ms)",
                request_id,
                request.method,
                request.url.path,
                status,
                duration_ms,
            )


# ---------------------------------------------------------------------------
# Helper functions used by the main application module
# ---------------------------------------------------------------------------


def log_provider_request(request_id: str, provider: str, operation: str, target: str) -> None:
    """Log the call that is about to go out to a provider."""

    logger.debug(
        "[request %s] → %s | %s | %s",
        request_id,
        provider,
        operation,
        target,
    )


def log_provider_response(
    request_id: str,
    provider: str,
    operation: str,
    summary: dict,
    duration: float,
) -> None:
    """Log what came back from the provider (counts, not payloads)."""

    logger.debug(
        "[request %s] ← %s | %s | %.0f ms | %s",
        request_id,
        provider,
        operation,
        duration * 1_000,
        summary,
    )
