"""Service configuration using Pydantic Settings."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the HTTP service, read from PNGMETA_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="PNGMETA_", env_file=".env", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    reload: bool = Field(default=False, description="Enable uvicorn auto-reload")

    # Vite dev server default
    cors_origins: List[str] = Field(default=["http://localhost:5173"], description="Allowed CORS origins")

    max_upload_bytes: int = Field(default=20 * 1024 * 1024, description="Largest accepted upload in bytes")
    max_inflated_bytes: int = Field(default=64 * 1024 * 1024, gt=0,
                                    description="Largest decompressed zTXt/iTXt text in bytes")
    default_text_type: str = Field(default="tEXt", description="Chunk type used when a request names none")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    return Settings()
