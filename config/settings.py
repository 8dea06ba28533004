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
        default="Image Store Service",
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

    # API Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Storage Configuration (for image files)
    storage_root: Path = Field(
        default=Path("data/images"),
        description="Root directory for stored image files"
    )

    # Id index used to resolve an image ID to its filename
    index_backend: Literal["scan", "memory", "database"] = Field(
        default="scan",
        description="How image IDs are resolved to files: directory scan, "
                    "in-memory index, or database index"
    )

    @field_validator("storage_root", mode="before")
    @classmethod
    def resolve_storage_path(cls, v: str | Path) -> Path:
        """Ensure storage root is a Path object."""
        if isinstance(v, str):
            return Path(v)
        return v

    # Database Configuration (for the database index)
    database_url: str = Field(
        default="sqlite:///data/images.sqlite3",
        description="Database connection URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements (for debugging)"
    )

    # Codec Configuration
    jpeg_quality: int = Field(
        default=85,
        ge=1,
        le=100,
        description="Quality used when encoding JPEG output"
    )
    webp_quality: int = Field(
        default=80,
        ge=1,
        le=100,
        description="Quality used when encoding WebP output"
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

    # Upload Configuration
    max_upload_size: int = Field(
        default=10 * 1024 * 1024,  # 10MB
        description="Maximum file upload size in bytes"
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
            logging.getLogger("image_store").setLevel(logging.DEBUG)
        else:
            # Pillow logs every plugin it probes at DEBUG
            logging.getLogger("PIL").setLevel(logging.WARNING)
            logging.getLogger("httpx").setLevel(logging.WARNING)
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
