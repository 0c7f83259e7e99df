"""Application settings via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings via environment variables."""

    # Search / naming endpoints
    api_base_url: str = "http://localhost:3000"
    request_timeout_seconds: float = 30.0
    stream_read_timeout_seconds: float | None = None  # None = wait for stream end

    # Storage
    # Options: "local" (JSON files) or "rest" (PostgREST-style HTTP API)
    storage_backend: Literal["local", "rest"] = "local"
    storage_path: str = "./storage/notebooks"
    storage_url: str = "http://localhost:54321/rest/v1"
    storage_api_key: str = ""

    # Conversation context sent with each search
    chat_history_window: int = 5

    # Notebook defaults
    default_notebook_title: str = "Untitled Notebook"
    generate_titles: bool = True
    persist_completed_entries: bool = True

    # Segment decoding
    scan_policy: Literal["priority", "first_marker"] = "priority"
    output_types: list[str] | None = None  # Overrides the OutputType enumeration order

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="SQL_NOTEBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
