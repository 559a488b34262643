"""Application configuration and settings."""
import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the ATS API and the screening worker."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="ATS_")

    database_url: str = "sqlite+aiosqlite:///./data/ats.db"
    data_directory: Path = Path("data")
    resume_storage_directory: Path = Path("data/resumes")

    worker_enabled: bool = True
    worker_interval_seconds: float = 30.0
    automatable_job_type: str = "technical"
    max_evaluation_attempts: int = 3

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    settings = Settings()
    settings.data_directory.mkdir(parents=True, exist_ok=True)
    settings.resume_storage_directory.mkdir(parents=True, exist_ok=True)
    return settings


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


settings = get_settings()
