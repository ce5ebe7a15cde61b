"""
Application settings.

Values come from ``STUDY_BUDDY_*`` environment variables or a local ``.env``
file, falling back to directories next to the package.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Study buddy configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STUDY_BUDDY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_dir: Path = Field(
        default=BASE_DIR / "data",
        description="Directory holding students.csv, availability.csv and sessions.csv",
    )
    export_dir: Path = Field(
        default=BASE_DIR / "exports",
        description="Default destination for exports",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
