"""
ChronoQuasar — Configuration via environment variables.
"""

from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """All settings read from env / .env file."""

    # Plausible (external analytics provider)
    plausible_api_key: str = Field(default="", description="Plausible Stats API key (Bearer token)")
    plausible_base_url: str = Field(
        default="https://plausible.io",
        description="Plausible instance base URL (self-hosted or cloud)",
    )
    plausible_timeout_seconds: float = Field(
        default=10.0, description="Per-request timeout for every provider call"
    )

    # Calendar — sessions and provider date ranges use the site's reporting zone
    reporting_timezone: str = Field(default="Asia/Kolkata")

    # Analytics cache / schedulers
    cache_ttl_minutes: int = Field(default=30)
    refresh_interval_minutes: int = Field(default=30, description="Wall-clock refresh cadence")
    snapshot_interval_minutes: int = Field(default=60)
    snapshot_history_limit: int = Field(default=10)
    schedulers_enabled: bool = Field(default=True)

    # Focus sets
    push_due_after_minutes: int = Field(default=120)

    # Collaborators (page metadata, search index)
    page_fetch_timeout_seconds: float = Field(default=5.0)
    index_check_timeout_seconds: float = Field(default=10.0)
    index_check_delay_seconds: float = Field(
        default=0.5, description="Pause between sequential checks in a batch"
    )

    # CORS — admin dashboard origin(s), comma separated
    cors_origins: str = Field(default="*")

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.reporting_timezone)

    def now(self) -> datetime:
        """Current time in the reporting timezone."""
        return datetime.now(self.tz)

    def today(self) -> str:
        """Today's session key (``YYYY-MM-DD``) in the reporting timezone."""
        return self.now().strftime("%Y-%m-%d")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
