"""Utility helpers to generate unique identifiers for provider inputs."""

from __future__ import annotations

import uuid


def new_nonce() -> str:
    """Return a short, URL-safe random nonce string (32 hex chars)."""
    return uuid.uuid4().hex


def new_input_id(prefix: str = "upload") -> str:
    """Identifier for an uploaded input, e.g. ``face-3f2a...``."""
    return f"{prefix}-{new_nonce()}"
