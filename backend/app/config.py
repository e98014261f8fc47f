"""
Clipstream Configuration Management Module

This module provides configuration management for the Clipstream video backend
using Pydantic Settings. It loads and validates all environment variables required for:
- Application settings (name, environment, debug mode, logging)
- MongoDB connection and pooling for video records
- S3/MinIO object storage and signed URL expiry
- Local JWT authentication
- The video ingestion pipeline (size ceilings, temp directory, media tools)

All settings support environment variable overrides and .env file loading with
validation and type safety.
"""

import tempfile

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration settings for the Clipstream platform.

    This class uses Pydantic Settings to load configuration from environment
    variables and .env files with full type validation.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - MongoDB: Database connection URI and connection pool settings
    - S3/MinIO: Object storage credentials, bucket and signed URL expiry
    - Auth: JWT signing secret and token lifetime
    - Upload pipeline: size limits, working directory, ffprobe/ffmpeg binaries

    Example usage:
        ```python
        from app.config import Settings

        settings = Settings()
        print(f"Uploading to bucket: {settings.s3_bucket_name}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="Clipstream",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable debug mode and verbose logging")

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=True, description="Emit structured JSON logs instead of plain text"
    )

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=8091, description="Port number for the API server", ge=1, le=65535)

    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000"],
        description="List of allowed CORS origins for frontend access",
    )

    # =========================================================================
    # MongoDB Configuration
    # =========================================================================

    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI (e.g., mongodb://localhost:27017)",
    )

    mongodb_db_name: str = Field(
        default="clipstream", description="MongoDB database name for video records"
    )

    mongodb_min_pool_size: int = Field(
        default=1, description="Minimum number of connections in MongoDB connection pool", ge=1
    )

    mongodb_max_pool_size: int = Field(
        default=50, description="Maximum number of connections in MongoDB connection pool", ge=1
    )

    # =========================================================================
    # S3/MinIO Storage Configuration
    # =========================================================================

    s3_endpoint_url: str | None = Field(
        default=None, description="S3-compatible endpoint URL for MinIO (None for AWS S3)"
    )

    s3_access_key_id: str | None = Field(
        default=None,
        description="S3/MinIO access key ID (None to use the default credential chain)",
    )

    s3_secret_access_key: str | None = Field(
        default=None,
        description="S3/MinIO secret access key (None to use the default credential chain)",
    )

    s3_bucket_name: str = Field(
        default="clipstream-videos", description="S3 bucket that receives uploaded media"
    )

    s3_region: str = Field(
        default="us-east-1",
        description="AWS region for S3 bucket (also used for MinIO compatibility)",
    )

    signed_url_expiration_seconds: int = Field(
        default=900,
        description="Lifetime of presigned GET URLs in seconds (15 minutes)",
        ge=60,
        le=3600,
    )

    # =========================================================================
    # Auth Configuration
    # =========================================================================

    secret_key: str = Field(
        default="development-secret-key-change-in-production-32chars",
        description="Secret key for JWT signing. Must be a secure random string.",
        min_length=32,
    )

    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm (HS family)")

    jwt_expiration_hours: int = Field(
        default=24, description="JWT token expiration time in hours", ge=1, le=168
    )

    # =========================================================================
    # Upload Pipeline Settings
    # =========================================================================

    max_video_upload_bytes: int = Field(
        default=1 << 30,
        description="Hard ceiling for a video upload request body (1 GiB)",
        ge=1,
    )

    max_thumbnail_upload_bytes: int = Field(
        default=10 << 20,
        description="Hard ceiling for a thumbnail upload request body (10 MiB)",
        ge=1,
    )

    upload_temp_dir: str = Field(
        default_factory=tempfile.gettempdir,
        description="Directory holding the per-request working files",
    )

    ffprobe_binary: str = Field(default="ffprobe", description="ffprobe executable")

    ffmpeg_binary: str = Field(default="ffmpeg", description="ffmpeg executable")

    media_tool_timeout_seconds: float = Field(
        default=300.0,
        description="Deadline for a single ffprobe/ffmpeg invocation",
        gt=0,
    )

    aspect_ratio_tolerance: float = Field(
        default=0.01,
        description="Absolute tolerance when matching width/height against 16:9 and 9:16",
        gt=0,
        lt=0.5,
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only shared-secret algorithms are supported for locally issued tokens."""
        valid_algorithms = {"HS256", "HS384", "HS512"}
        if v.upper() not in valid_algorithms:
            raise ValueError(
                f"Invalid jwt_algorithm '{v}'. Must be one of: {', '.join(valid_algorithms)}"
            )
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from comma-separated string if provided as string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    The @lru_cache decorator ensures that the Settings object is created only
    once on first call, and subsequent calls return the cached instance without
    re-reading environment variables or .env files.

    Returns:
        Settings: The global configuration instance.
    """
    return Settings()
