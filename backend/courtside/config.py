"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - feed_page_size stays within the server's accepted 1..50 range

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works against a local Supabase stack
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="COURTSIDE_", case_sensitive=False,
    )

    # Remote (Supabase edge functions + REST)
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = "anon-placeholder"
    request_timeout_seconds: float = 15.0

    @field_validator("supabase_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Path joins assume no trailing slash on the project URL."""
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    # Feed cache
    feed_page_size: int = Field(20, ge=1, le=50)
    feed_stale_after_seconds: float = Field(30.0, ge=0)
    feed_cache_max_entries: int = Field(64, ge=1)

    # Pricing display
    currency_symbol: str = "$"

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
