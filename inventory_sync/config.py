"""Configuration management with pydantic-settings and validation."""

from pydantic_settings import BaseSettings
from pydantic import field_validator


# Fields that must be present and non-empty
REQUIRED_FIELDS = {
    "database_url",
    "shiphero_api_url",
    "shiphero_refresh_url",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str

    # ShipHero API
    shiphero_api_url: str = "https://public-api.shiphero.com/graphql"
    shiphero_refresh_url: str = "https://public-api.shiphero.com/auth/refresh"
    http_timeout_seconds: float = 30.0
    token_refresh_buffer_seconds: int = 300

    # Trigger authorization (empty = triggers rejected outside development)
    cron_secret: str = ""
    environment: str = "production"
    trigger_max_duration_seconds: int = 300

    # Query ingestion
    query_page_size: int = 100
    query_locations_page_size: int = 50
    query_max_pages: int = 1000
    query_page_delay_seconds: float = 0.1

    # Snapshot ingestion
    snapshot_poll_interval_seconds: float = 20.0
    snapshot_max_poll_attempts: int = 30

    # Cache writes
    insert_batch_size: int = 1000

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("database_url", mode="before")
    @classmethod
    def fix_database_url(cls, v):
        """Hosted Postgres uses postgres:// but SQLAlchemy requires postgresql://."""
        if isinstance(v, str) and v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator(*REQUIRED_FIELDS, mode="before")
    @classmethod
    def check_not_empty(cls, v, info):
        """Validate that required environment variables are not empty."""
        if v is None:
            raise ValueError(f"{info.field_name} is not set")
        if isinstance(v, str) and v.strip() == "":
            raise ValueError(f"{info.field_name} is empty")
        return v

    @field_validator(
        "query_page_size",
        "query_max_pages",
        "snapshot_max_poll_attempts",
        "insert_batch_size",
    )
    @classmethod
    def check_positive(cls, v, info):
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @property
    def is_development(self) -> bool:
        return self.environment.strip().lower() == "development"

    @property
    def snapshot_worst_case_seconds(self) -> float:
        """Longest time the snapshot poll loop can spend waiting."""
        return self.snapshot_poll_interval_seconds * self.snapshot_max_poll_attempts


def get_settings() -> Settings:
    """Load and validate settings from environment.

    Raises:
        ValidationError: If required environment variables are missing or invalid.
    """
    return Settings()
