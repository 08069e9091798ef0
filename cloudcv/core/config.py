# Standard library imports
import os
from typing import Optional

# External package imports
from dotenv import load_dotenv
from pydantic import BaseModel, Field


def _default_max_workers() -> int:
    return os.cpu_count() or 1


class Settings(BaseModel):
    """
    Bridge settings loaded from environment variables.

    Values are read once (after loading a local .env file, if present) and
    validated; an out-of-range value fails fast at first access.
    """

    # Native execution context
    max_workers: int = Field(default_factory=_default_max_workers, ge=1)

    # Camera calibration
    square_size: float = Field(default=1.0, gt=0.0)

    # Image encoding
    jpeg_quality: int = Field(default=95, ge=0, le=100)
    png_compression: int = Field(default=3, ge=0, le=9)

    @classmethod
    def from_env(cls) -> "Settings":
        values = {}
        env_map = {
            "max_workers": "CLOUDCV_MAX_WORKERS",
            "square_size": "CLOUDCV_SQUARE_SIZE",
            "jpeg_quality": "CLOUDCV_JPEG_QUALITY",
            "png_compression": "CLOUDCV_PNG_COMPRESSION",
        }
        for field_name, env_name in env_map.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()
        return cls(**values)


# Global settings instance (singleton pattern)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get bridge settings (singleton pattern)

    Returns:
        Settings instance with all configuration values
    """
    global _settings
    if _settings is None:
        load_dotenv()
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
