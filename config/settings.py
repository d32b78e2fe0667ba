"""Application settings and configuration."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(
        default="Edge Image Proxy",
        description="Application name"
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )
    environment: Literal["local", "dev", "stage", "prod"] = Field(
        default="local",
        description="Deployment environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Upload Configuration
    api_key: Optional[str] = Field(
        default=None,
        description="Shared secret expected in the X-API-KEY header for uploads"
    )
    domain: str = Field(
        default="http://localhost:8000",
        description="Public base URL used to build image paths"
    )
    upload_field: str = Field(
        default="files",
        description="Multipart field name carrying uploaded files"
    )
    max_upload_size: int = Field(
        default=10 * 1024 * 1024,  # 10MB
        description="Maximum image size in bytes, for uploads and fetched URLs"
    )
    fetch_timeout: float = Field(
        default=30.0,
        description="Timeout for fetching remote images (seconds)"
    )
    compat_error_status: bool = Field(
        default=False,
        description="Answer ingestion runtime failures with status 200"
    )

    @field_validator("domain")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the public base URL."""
        return v.rstrip("/")

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )
    cors_max_age: int = Field(
        default=86400,
        description="Preflight cache duration (seconds)"
    )

    # Storage Configuration
    storage_type: Literal["local", "memory"] = Field(
        default="local",
        description="Object storage backend for image files"
    )
    storage_root: Path = Field(
        default=Path("data/images"),
        description="Root directory for local storage"
    )

    @field_validator("storage_root", mode="before")
    @classmethod
    def resolve_storage_path(cls, v: str | Path) -> Path:
        """Ensure storage root is a Path object."""
        if isinstance(v, str):
            return Path(v)
        return v

    # Response Cache Configuration
    cache_enabled: bool = Field(
        default=True,
        description="Serve image retrievals through the response cache"
    )
    cache_s_maxage: int = Field(
        default=3600,
        description="Shared cache freshness for served images (seconds)"
    )
    cache_max_entries: int = Field(
        default=1024,
        description="Maximum number of cached responses"
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Path to log file (if None, logs to stdout only)"
    )

    @property
    def log_level_numeric(self) -> int:
        """Get numeric log level."""
        return getattr(logging, self.log_level)

    def configure_logging(self) -> None:
        """Configure logging based on settings."""
        import sys

        handlers: list[logging.Handler] = []

        console_handler = logging.StreamHandler(sys.stdout)
        handlers.append(console_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file)
            handlers.append(file_handler)

        if self.log_json:
            import json

            class JSONFormatter(logging.Formatter):
                def format(self, record: logging.LogRecord) -> str:
                    log_obj = {
                        "timestamp": self.formatTime(record),
                        "level": record.levelname,
                        "logger": record.name,
                        "message": record.getMessage(),
                        "module": record.module,
                        "function": record.funcName,
                        "line": record.lineno,
                    }
                    if record.exc_info:
                        log_obj["exception"] = self.formatException(record.exc_info)
                    return json.dumps(log_obj)

            formatter = JSONFormatter()
        else:
            formatter = logging.Formatter(self.log_format)

        for handler in handlers:
            handler.setFormatter(formatter)

        logging.basicConfig(
            level=self.log_level_numeric,
            handlers=handlers,
            force=True,
        )

        if self.debug:
            logging.getLogger("edge_image_proxy").setLevel(logging.DEBUG)
        else:
            # Outbound fetches are noisy at INFO
            logging.getLogger("urllib3").setLevel(logging.WARNING)
            logging.getLogger("httpx").setLevel(logging.WARNING)

    def public_path(self, key: str) -> str:
        """Build the public URL for a stored image key."""
        return f"{self.domain}/images/{key}"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
