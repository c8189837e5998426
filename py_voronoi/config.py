"""Configuration management."""

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Library settings pulled from VORONOI_* environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Queries
    tie_tolerance: float = Field(
        default=0.0, ge=0.0, description="Absolute slack within which two distances count as a tie"
    )
    default_metric: str = Field(default="euclidean", description="Metric used when none is given")

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got {value!r}")
        return value

    class Config:
        env_prefix = "VORONOI_"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate singleton settings object
settings = Settings()
