"""Centralized provider credential management.

All provider calls fetch their credentials through this module so the
precedence between project settings and the raw process environment lives in
one place.
"""

from __future__ import annotations

import logging
import os

from .config import settings

logger = logging.getLogger(__name__)


class ProviderKeyError(Exception):
    """Raised when a provider credential is not configured."""
    pass


def _resolve(setting_value: str | None, env_var: str, provider: str) -> str:
    """Return a credential, preferring project settings over the environment.

    The precedence order is:

    1. the value injected via *pydantic-settings* (which already resolves
       `.env` files and regular environment variables);
    2. the raw environment variable, so quick shell experiments keep working
       when the settings object was created before the variable was set.
    """
    if setting_value:
        logger.debug("Using %s credential from Settings", provider)
        return setting_value

    env_value = os.environ.get(env_var)
    if env_value:
        logger.debug("Using %s credential from environment variable", provider)
        return env_value

    raise ProviderKeyError(
        f"{provider} credential not configured. Set the {env_var} environment "
        "variable or add it to the .env file recognised by the Settings object "
        "(see src/gateway/app/config.py)."
    )


def get_clarifai_pat() -> str:
    return _resolve(settings.clarifai_pat, "CLARIFAI_PAT", "Clarifai")


def get_serp_api_key() -> str:
    return _resolve(settings.serp_api_key, "SERP_API_KEY", "SerpApi")
