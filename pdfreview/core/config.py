"""Application settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central config — every value has a sensible single-node default."""

    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Persistence
    database_url: str = Field(default="sqlite:///./database.db")
    schema_bootstrap: str = Field(
        default="migrate",
        description="How the schema is prepared on startup: migrate | create_all | none",
    )

    # Asset storage
    upload_dir: str = Field(default="uploads")
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Upper bound for a stored PDF, in bytes.",
    )
    accepted_mime_type: str = Field(default="application/pdf")

    # HTTP
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    public_base_url: str = Field(
        default="http://localhost:3001",
        description="Base URL printed by the CLI when linking to a project.",
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
