"""
Configuration settings for kmlscope.
"""

import re
from typing import Any, Literal, Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kmlscope.core.errors import ConfigurationError

HEX_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        environment: Deployment environment, selects the console log format
        log_level: Log level name; derived from environment when unset
        max_archive_size_mb: Largest KMZ archive accepted, in megabytes
        max_uncompressed_size_mb: Largest total inflated KMZ size, in megabytes
        image_extensions: Archive entries collected as image resources
        salvage_line_color: Line color applied by the salvage parser
        salvage_fill_color: Fill color applied by the salvage parser
        salvage_fill_opacity: Fill opacity applied by the salvage parser
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="KMLSCOPE_",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Optional[str] = None

    # Archive limits
    max_archive_size_mb: int = 100
    max_uncompressed_size_mb: int = 500

    # Archive resources
    image_extensions: tuple[str, ...] = (".png", ".jpg", ".jpeg", ".gif", ".svg")

    # Salvage style
    salvage_line_color: str = "#3700ff"
    salvage_fill_color: str = "#42eedc"
    salvage_fill_opacity: float = 0.2

    @field_validator("salvage_line_color", "salvage_fill_color")
    @classmethod
    def validate_hex_color(cls, v: str) -> str:
        """Validate display colors are #rrggbb strings."""
        if not HEX_COLOR_PATTERN.match(v):
            raise ValueError(f"Expected a #rrggbb color, got '{v}'")
        return v.lower()

    @field_validator("salvage_fill_opacity")
    @classmethod
    def validate_opacity(cls, v: float) -> float:
        """Validate opacity is a 0-1 fraction."""
        if not 0 <= v <= 1:
            raise ValueError(f"Opacity must be between 0 and 1, got {v}")
        return v

    @field_validator("max_archive_size_mb", "max_uncompressed_size_mb")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate size limits are positive."""
        if v <= 0:
            raise ValueError("Size limits must be positive")
        return v

    @property
    def max_archive_size_bytes(self) -> int:
        """Get max archive size in bytes."""
        return self.max_archive_size_mb * 1024 * 1024

    @property
    def max_uncompressed_size_bytes(self) -> int:
        """Get max inflated archive size in bytes."""
        return self.max_uncompressed_size_mb * 1024 * 1024


def load_settings(**overrides: Any) -> Settings:
    """
    Build a Settings instance, reporting invalid values as ConfigurationError.

    Args:
        **overrides: Explicit values taking precedence over the environment

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If any value fails validation
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        first = e.errors()[0]
        config_key = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg', str(e))}",
            config_key=config_key or None,
            details={"errors": e.errors(include_url=False)},
        ) from e


# Global settings instance
settings = load_settings()
