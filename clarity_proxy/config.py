"""Clarity Proxy — Central Configuration via Pydantic Settings."""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Clarity Export API ──
    clarity_api_token: str = ""
    clarity_export_url: str = (
        "https://www.clarity.ms/export-data/api/v1/project-live-insights"
    )
    clarity_timeout_seconds: float = 30.0

    # ── Access ──
    shared_secret: Optional[str] = None

    # ── Cache ──
    cache_policy: str = "daily"  # daily | short
    cache_ttl_daily_seconds: int = 24 * 60 * 60
    cache_ttl_short_seconds: int = 5 * 60

    # ── Requests ──
    default_days: int = 3
    max_target_url_length: int = 2000
    schema_sample_key_limit: int = 80
    url_sample_limit: int = 150

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = False
    cache_warm_hour: int = 5
    cache_warm_profiles: List[str] = ["url"]

    @property
    def cache_ttl_seconds(self) -> int:
        """Return the TTL for the configured cache policy."""
        if self.cache_policy.lower() == "short":
            return self.cache_ttl_short_seconds
        return self.cache_ttl_daily_seconds

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
