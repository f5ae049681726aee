"""
Application Settings
===================

Environment settings loaded with Pydantic Settings, and the immutable
service configuration built from them once at startup.
"""

import os
from pathlib import Path
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from html_to_image.config.logging import get_logger

logger = get_logger(__name__)

BYTES_PER_MEGABYTE = 1024 * 1024
DEFAULT_MAX_BODY_MB = 1
DEFAULT_MAX_BODY_SIZE = DEFAULT_MAX_BODY_MB * BYTES_PER_MEGABYTE
MAX_DIMENSION = 4096
MAX_SCALE = 8.0
MAX_ANIMATION_TIME = 60.0
DEFAULT_SERVER_ADDR = "0.0.0.0:3000"
DEFAULT_FONTS_DIR = "assets/fonts"


class ConfigurationError(Exception):
    """Raised when startup configuration is invalid."""

    pass


class RenderLimits(BaseModel):
    """Numeric limits applied to every render request."""

    model_config = ConfigDict(frozen=True)

    max_dimension: int = Field(default=MAX_DIMENSION, ge=1)
    max_scale: float = Field(default=MAX_SCALE, gt=0)
    max_animation_time: float = Field(default=MAX_ANIMATION_TIME, ge=0)


class ServiceConfig(BaseModel):
    """Process-wide configuration, shared read-only by every request."""

    model_config = ConfigDict(frozen=True)

    fonts_dir: Optional[Path] = None
    limits: RenderLimits = Field(default_factory=RenderLimits)
    max_body_size: int = Field(default=DEFAULT_MAX_BODY_SIZE, ge=1)
    server_base_url: Optional[str] = None


def default_render_workers() -> int:
    return max(1, min(4, os.cpu_count() or 1))


def parse_addr(raw: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address."""
    host, sep, port = raw.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"invalid addr {raw}")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"invalid addr {raw}") from None
    if not 0 < port_number < 65536:
        raise ValueError(f"invalid addr {raw}")
    return host.strip("[]"), port_number


def validate_fonts_dir(path: Path) -> Path:
    """Canonicalize the fonts directory and check that it is a directory."""
    try:
        canonical = path.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise ConfigurationError(f"failed to read fonts dir {path}: {e}") from e
    if not canonical.is_dir():
        raise ConfigurationError(f"fonts dir is not a directory: {canonical}")
    return canonical


class Settings(BaseSettings):
    """Environment settings for the render service."""

    # Application Configuration
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    enable_docs: bool = Field(default=True, description="Expose Swagger UI and OpenAPI spec")

    # Server Configuration
    server_addr: str = Field(default=DEFAULT_SERVER_ADDR, description="Listen address host:port")
    max_body: int = Field(default=DEFAULT_MAX_BODY_MB, description="Maximum request body in MiB")

    # Rendering Configuration
    fonts_dir: Optional[Path] = Field(
        default=Path(DEFAULT_FONTS_DIR), description="Fonts directory, empty to disable fonts"
    )
    max_dimension: int = Field(default=MAX_DIMENSION, ge=1, description="Maximum width/height")
    max_scale: float = Field(default=MAX_SCALE, gt=0, description="Maximum scale factor")
    max_animation_time: float = Field(
        default=MAX_ANIMATION_TIME, ge=0, description="Maximum animation time in seconds"
    )

    # Worker Configuration
    render_workers: int = Field(
        default_factory=default_render_workers, ge=1, description="Render worker threads"
    )
    render_queue_size: Optional[int] = Field(
        default=None, ge=0, description="Jobs allowed to wait for a render worker"
    )
    browser_timeout_ms: int = Field(
        default=0, ge=0, description="Browser operation timeout in milliseconds, 0 disables it"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("server_addr")
    @classmethod
    def validate_server_addr(cls, v: str) -> str:
        """Validate the listen address."""
        parse_addr(v)
        return v.strip()

    @field_validator("max_body", mode="before")
    @classmethod
    def parse_max_body(cls, v: Any) -> int:
        """Parse the body limit in MiB, falling back to the default on bad input."""
        try:
            megabytes = int(str(v).strip())
        except ValueError as e:
            logger.warning(
                "failed to parse HTML_TO_IMAGE_MAX_BODY (MiB), using default",
                value=v,
                error=str(e),
            )
            return DEFAULT_MAX_BODY_MB
        if megabytes < 1 or megabytes * BYTES_PER_MEGABYTE > 2**63 - 1:
            logger.warning("HTML_TO_IMAGE_MAX_BODY out of range, using default", value=v)
            return DEFAULT_MAX_BODY_MB
        return megabytes

    @field_validator("fonts_dir", mode="before")
    @classmethod
    def parse_fonts_dir(cls, v: Any) -> Optional[Any]:
        """Treat an empty fonts directory as disabled."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @property
    def host(self) -> str:
        return parse_addr(self.server_addr)[0]

    @property
    def port(self) -> int:
        return parse_addr(self.server_addr)[1]

    @property
    def max_body_size(self) -> int:
        return self.max_body * BYTES_PER_MEGABYTE

    @property
    def max_pending_renders(self) -> int:
        if self.render_queue_size is None:
            return self.render_workers * 4
        return self.render_queue_size

    def to_service_config(self) -> ServiceConfig:
        """
        Build the immutable service configuration.

        Raises:
            ConfigurationError: If the fonts directory is missing or not a directory
        """
        fonts_dir = validate_fonts_dir(self.fonts_dir) if self.fonts_dir is not None else None
        return ServiceConfig(
            fonts_dir=fonts_dir,
            limits=RenderLimits(
                max_dimension=self.max_dimension,
                max_scale=self.max_scale,
                max_animation_time=self.max_animation_time,
            ),
            max_body_size=self.max_body_size,
            server_base_url=f"http://{self.server_addr}",
        )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="HTML_TO_IMAGE_"
    )


def load_settings() -> Settings:
    """Load settings from the environment and ``.env``."""
    return Settings()
