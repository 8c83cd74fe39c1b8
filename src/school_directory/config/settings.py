# src/school_directory/config/settings.py
import logging
from typing import List, Optional
from pydantic import Field, field_validator
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
        from school_directory.config.settings import get_settings
        settings = get_settings()
        upload_dir = settings.upload_dir
    """

    # Application Settings
    app_name: str = Field(
        default="school-directory",
        description="Application name"
    )

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Origins allowed to call the API from a browser"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///schools.db",
        alias="DATABASE_URL",
        description="Database connection string, e.g. sqlite:///schools.db"
    )

    db_pool_size: int = Field(
        default=5,
        ge=1,
        description="Maximum number of pooled database connections"
    )

    db_pool_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a free pooled connection"
    )

    query_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts for a query failing with a transient connection error"
    )

    query_retry_delay: float = Field(
        default=1.0,
        ge=0,
        description="Base retry delay; attempt N waits N times this many seconds"
    )

    # Local Image Storage
    upload_dir: str = Field(
        default="public/schoolImages",
        description="Directory where locally stored school images are written"
    )

    public_image_path: str = Field(
        default="/schoolImages",
        description="Public URL path that serves locally stored images"
    )

    max_image_bytes: int = Field(
        default=2 * 1024 * 1024,
        description="Largest accepted image upload"
    )

    # S3 Image Storage (active when a bucket name is configured)
    s3_bucket_name: Optional[str] = Field(
        default=None,
        alias="S3_BUCKET_NAME",
        description="S3 bucket for school images"
    )

    s3_folder: str = Field(
        default="schoolImages",
        description="Key prefix for uploaded school images"
    )

    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @property
    def storage_backend(self) -> str:
        """Image storage strategy implied by the configuration: 's3' or 'local'."""
        return "s3" if self.s3_bucket_name else "local"

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v):
        """Only sqlite connection strings are supported."""
        if not v.startswith("sqlite://"):
            raise ValueError(f"Unsupported database_url: {v}. Expected sqlite:///<path>")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Normalize and validate the log level name."""
        level = str(v).upper()
        valid_levels = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]
        if level not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return level

    @field_validator('s3_bucket_name')
    @classmethod
    def blank_bucket_is_unset(cls, v):
        """Treat an empty S3_BUCKET_NAME as not configured."""
        if v is not None and not v.strip():
            return None
        return v

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
