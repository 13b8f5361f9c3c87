from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()

MIN_ATTEMPTS = 15


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PHOTOFIT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Uploads
    upload_dir: Path = Field(
        Path("uploads"), description="Directory holding transient uploaded files."
    )
    max_upload_bytes: int = Field(10 * 1024 * 1024, ge=1, description="Largest accepted upload (bytes).")

    # Quality search
    max_attempts: int = Field(20, ge=MIN_ATTEMPTS, description="Encode attempts before the search gives up.")
    default_encoder: str = Field("pillow", description="Encoder used by the service: pillow or raster.")

    # Client
    api_url: str = Field("http://localhost:3001/api", description="Base URL of the processing service.")
    client_timeout: float = Field(30.0, gt=0)

    log_level: str = Field("INFO")


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
