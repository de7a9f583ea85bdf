# src/articles_api/settings.py
from typing import List, Optional
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from articles_api.settings import get_settings
        settings = get_settings()
        bucket_name = settings.s3_bucket_name
    """

    # Application Settings
    app_name: str = Field(
        default="articles-api",
        description="Application name"
    )

    app_port: int = Field(
        default=3000,
        validation_alias=AliasChoices("APP_PORT", "PORT", "app_port"),
        description="Port used by `articles-api serve` when none is given"
    )

    cors_origins: List[str] = Field(
        default=["*"],
        description="Origins allowed by the CORS middleware"
    )

    # Relational store
    database_path: str = Field(
        default="articles.db",
        description="SQLite database file holding the articles table"
    )

    db_pool_size: int = Field(
        default=4,
        ge=1,
        description="Hard cap on concurrently checked-out connections"
    )

    db_busy_timeout: float = Field(
        default=5.0,
        ge=0,
        description="Seconds a publish waits for another publish's write lock before giving up"
    )

    # Object store (DigitalOcean Spaces speaks the S3 API)
    s3_bucket_name: str = Field(
        default="abc1234",
        description="Bucket holding article images and misc images"
    )

    spaces_domain: str = Field(
        default="sgp1.digitaloceanspaces.com",
        description="Storage provider domain used to build public URLs"
    )

    aws_region: str = Field(
        default="sgp1",
        validation_alias=AliasChoices("AWS_DEFAULT_REGION", "aws_region"),
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("S3_ACCESS_KEY", "AWS_ACCESS_KEY_ID", "aws_access_key_id"),
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("S3_SECRET_KEY", "AWS_SECRET_ACCESS_KEY", "aws_secret_access_key"),
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("AWS_ENDPOINT_URL", "aws_endpoint_url"),
        description="Object store endpoint (defaults to https://<spaces_domain>)"
    )

    # Local staging and static files
    staging_dir: str = Field(
        default="tmp",
        description="Directory where uploaded payloads are staged before processing"
    )

    static_dir: str = Field(
        default="public",
        description="Directory served as static files when it exists"
    )

    # Behaviour switches
    list_max_keys: int = Field(
        default=99,
        ge=1,
        le=1000,
        description="MaxKeys for the single list call behind the image listing"
    )

    cleanup_staged_on_failure: bool = Field(
        default=False,
        description="Also delete the staged file when a publication fails"
    )

    bulk_report_results: bool = Field(
        default=False,
        description="Return per-item outcomes from bulk uploads instead of a bare acknowledgment"
    )

    bulk_max_workers: int = Field(
        default=4,
        ge=1,
        description="Worker threads used by the bulk uploader"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v

    @model_validator(mode="after")
    def set_endpoint_url_from_domain(self) -> "Settings":
        """Auto-set the endpoint URL from the Spaces domain if not explicitly provided."""
        if self.aws_endpoint_url is None:
            self.aws_endpoint_url = f"https://{self.spaces_domain}"
        return self

    @property
    def public_base_url(self) -> str:
        """Base URL under which public-read objects are served."""
        return f"https://{self.s3_bucket_name}.{self.spaces_domain}"

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
