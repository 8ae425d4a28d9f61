"""Export defaults for Phantom, loaded from the environment."""

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class Settings(BaseSettings):
    """Export settings loaded from ``PHANTOM_EXPORT_*`` variables or ``.env``.

    These only supply defaults; explicit arguments to the export functions
    always win, and nothing here changes schema, measure or layout content.
    """

    # Packaging
    project_prefix: str = Field(default="Phantom", description="Prefix of the PBIP project name")
    compression: Literal["deflated", "stored"] = "deflated"
    compress_level: int = Field(default=6, ge=0, le=9)

    # Output
    output_dir: str = "."
    write_guide: bool = True

    # Styling
    theme_colors: list[str] = Field(default_factory=list, description="Theme palette, #RRGGBB")

    # Logging (CLI only)
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(env_prefix="PHANTOM_EXPORT_", env_file=".env")

    @field_validator("theme_colors")
    @classmethod
    def _check_colors(cls, value: list[str]) -> list[str]:
        bad = [color for color in value if not _HEX_COLOR.match(color)]
        if bad:
            raise ValueError(f"theme colors must be #RRGGBB, got {bad}")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
