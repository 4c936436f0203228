"""Centralized client-side configuration for lenslink.

Single source of truth for everything the detection/search tooling reads from
the environment.  It uses pydantic-settings to:
- Load configuration from .env files
- Validate types and values
- Provide defaults where appropriate
- Support environment variable overrides
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global settings for lenslink clients."""

    # Gateway Configuration
    lenslink_gateway_url: str | None = Field(
        None,
        description="Full gateway URL (overrides host/port if set)"
    )
    lenslink_gateway_host: str = Field(
        "localhost",
        description="Gateway hostname"
    )
    lenslink_gateway_port: int = Field(
        3000,
        description="Gateway port number"
    )
    gateway_timeout: float = Field(
        60.0,
        description="Seconds to wait for a gateway response"
    )

    # Image hosting (crop uploads and local file submission)
    imgbb_api_key: str | None = Field(
        None,
        description="API key for the image host"
    )
    imgbb_upload_url: str = Field(
        "https://api.imgbb.com/1/upload",
        description="Image host upload endpoint"
    )

    # Logging
    lenslink_log_level: str = Field(
        "INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # Detection / search behaviour
    detection_mode: Literal["faces", "objects", "both"] = Field(
        "both",
        description="Default detection mode"
    )
    search_mode: Literal["crop", "full"] = Field(
        "crop",
        description="Crop the clicked region before searching, or search the full image"
    )
    image_load_timeout: float = Field(
        7.0,
        description="Upper bound in seconds for loading/decoding the source image"
    )
    render_width: int = Field(
        500,
        description="Width the source image is displayed at; height keeps the aspect ratio"
    )
    crop_jpeg_quality: int = Field(
        90,
        ge=1,
        le=95,
        description="JPEG quality for cropped uploads"
    )
    max_result_cards: int = Field(
        12,
        description="Number of search results shown"
    )

    @computed_field
    @property
    def gateway_url(self) -> str:
        """Compute the full gateway URL from components."""
        if self.lenslink_gateway_url:
            return self.lenslink_gateway_url.rstrip("/")
        return f"http://{self.lenslink_gateway_host}:{self.lenslink_gateway_port}"

    model_config = {
        # Look for .env file in project root (3 levels up from this file)
        "env_file": Path(__file__).parent.parent.parent / ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore unknown environment variables
    }


# Create a singleton instance that will be imported throughout the codebase
settings = Settings()
