"""Runtime configuration.

Values come from the environment (prefix `CRAWL_`) or a local `.env` file, e.g.

    CRAWL_API_BASE_URL=https://jobs.example.com/api/admin
    CRAWL_API_TOKEN=...
    CRAWL_PASSIVE_REFRESH_S=0     # disable idle history refresh
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import LaunchFilters


class CrawlSettings(BaseSettings):
    """Settings for the orchestrator and its admin API backend."""

    model_config = SettingsConfigDict(
        env_prefix="CRAWL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_base_url: str = Field(
        default="http://localhost:5000/api/admin",
        description="Base URL of the admin API serving /scrape/* and /verify-data.",
    )
    api_token: Optional[str] = Field(default=None, description="Bearer token; requests go out unauthenticated if unset.")

    poll_interval_s: float = Field(default=2.0, gt=0, description="Polling cadence while a session is tracked.")
    passive_refresh_s: float = Field(
        default=15.0,
        description="History refresh cadence while idle; 0 or less disables it.",
    )
    request_timeout_s: float = Field(default=5.0, gt=0, description="Upper bound for each HTTP request.")

    triggered_by: str = "admin"
    filter_indian_jobs: bool = True
    country: str = "India"
    location: str = "India"

    log_level: str = Field(default="INFO", description="Logging level for the CLI.")

    @property
    def passive_refresh_enabled(self) -> bool:
        return self.passive_refresh_s > 0

    def default_filters(self) -> LaunchFilters:
        return LaunchFilters(
            filter_indian_jobs=self.filter_indian_jobs,
            country=self.country,
            location=self.location,
            triggered_by=self.triggered_by,
        )


@lru_cache
def get_settings() -> CrawlSettings:
    return CrawlSettings()
