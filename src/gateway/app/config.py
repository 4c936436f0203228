from pydantic_settings import BaseSettings
from pydantic import Field


# ---------------------------------------------------------------------------
# Centralised runtime configuration for the lenslink gateway.  We tolerate
# unknown environment variables so that experiments or unrelated tooling
# don't crash the service (`extra = "ignore"`).  At the same time we expose
# explicit fields for every variable the gateway reads so that IDE
# autocompletion and type checking still work.
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    # Provider credentials
    clarifai_pat: str | None = Field(None, alias="CLARIFAI_PAT")
    serp_api_key: str | None = Field(None, alias="SERP_API_KEY")

    # Gateway network settings (used when the process binds its socket)
    lenslink_gateway_host: str = Field("0.0.0.0", alias="LENSLINK_GATEWAY_HOST")
    lenslink_gateway_port: int = Field(3000, alias="LENSLINK_GATEWAY_PORT")

    # Browser origin allowed to call the gateway
    frontend_url: str = Field("http://localhost:5173", alias="FRONTEND_URL")

    environment: str = Field("development", alias="LENSLINK_ENV")

    # Logging
    log_level: str = Field("INFO", alias="LENSLINK_LOG_LEVEL")

    # Per-actor detection entry counters
    entry_store_path: str = Field("data/entries.json", alias="ENTRY_STORE_PATH")

    # Detection provider
    clarifai_base_url: str = Field("https://api.clarifai.com/v2", alias="CLARIFAI_BASE_URL")
    clarifai_user_id: str = Field("clarifai", alias="CLARIFAI_USER_ID")
    clarifai_app_id: str = Field("main", alias="CLARIFAI_APP_ID")
    clarifai_face_model: str = Field("face-detection", alias="CLARIFAI_FACE_MODEL")
    clarifai_object_model: str = Field("general-image-detection", alias="CLARIFAI_OBJECT_MODEL")

    # Search provider
    serpapi_base_url: str = Field("https://serpapi.com/search.json", alias="SERPAPI_BASE_URL")

    provider_timeout: float = Field(30.0, alias="PROVIDER_TIMEOUT")
    min_object_confidence: float = Field(0.75, alias="MIN_OBJECT_CONFIDENCE")

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore undeclared env vars
        "populate_by_name": True,
    }


settings = Settings()
