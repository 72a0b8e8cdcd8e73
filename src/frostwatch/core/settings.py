"""Application settings and configuration.

This module defines all configuration options for the Frostwatch service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Frostwatch", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./frostwatch.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    storage_timeout_seconds: float = Field(default=10.0, alias="STORAGE_TIMEOUT_SECONDS")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Report validity window (minutes)
    base_validity_minutes: int = Field(default=60, alias="BASE_VALIDITY_MINUTES")
    upvote_extension_minutes: int = Field(default=20, alias="UPVOTE_EXTENSION_MINUTES")
    upvote_bonus_cap_minutes: int = Field(default=10, alias="UPVOTE_BONUS_CAP_MINUTES")
    max_validity_cap_minutes: int = Field(default=70, alias="MAX_VALIDITY_CAP_MINUTES")
    downvotes_per_batch: int = Field(default=5, alias="DOWNVOTES_PER_BATCH")
    minutes_per_downvote_batch: int = Field(default=2, alias="MINUTES_PER_DOWNVOTE_BATCH")

    # Proximity
    proximity_radius_meters: float = Field(default=50.0, alias="PROXIMITY_RADIUS_METERS")
    proximity_update_interval_seconds: float = Field(
        default=5.0,
        alias="PROXIMITY_UPDATE_INTERVAL_SECONDS",
    )

    # Live report updates
    change_feed_backend: Literal["push", "polling"] = Field(
        default="push",
        alias="CHANGE_FEED_BACKEND",
    )
    change_feed_poll_interval_seconds: float = Field(
        default=10.0,
        alias="CHANGE_FEED_POLL_INTERVAL_SECONDS",
    )
    change_feed_queue_size: int = Field(default=256, alias="CHANGE_FEED_QUEUE_SIZE")

    # Anonymous identity
    identity_cache_ttl_seconds: float = Field(default=300.0, alias="IDENTITY_CACHE_TTL_SECONDS")

    # Comments
    max_comment_length: int = Field(default=500, alias="MAX_COMMENT_LENGTH")
    comments_per_page: int = Field(default=20, alias="COMMENTS_PER_PAGE")
    comment_auto_delete_threshold: int = Field(
        default=15,
        alias="COMMENT_AUTO_DELETE_THRESHOLD",
    )

    # IP geolocation fallback
    ip_geolocation_enabled: bool = Field(default=False, alias="IP_GEOLOCATION_ENABLED")
    location_timeout_seconds: float = Field(default=30.0, alias="LOCATION_TIMEOUT_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def validity_limits(self) -> dict[str, int]:
        """Return the validity window constants as a convenience dictionary."""
        return {
            "base_minutes": self.base_validity_minutes,
            "upvote_extension_minutes": self.upvote_extension_minutes,
            "upvote_bonus_cap_minutes": self.upvote_bonus_cap_minutes,
            "max_cap_minutes": self.max_validity_cap_minutes,
            "downvotes_per_batch": self.downvotes_per_batch,
            "minutes_per_downvote_batch": self.minutes_per_downvote_batch,
        }


settings = Settings()
