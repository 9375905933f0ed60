"""
Configuration management for the Planwise reminder synchronizer.

Handles environment-based configuration for development and production.
"""
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "development")

    # Debug - handle non-boolean values gracefully
    debug: bool = False

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        """Parse debug from environment, handling non-boolean values."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes")
        debug_env = os.getenv("DEBUG", "false").lower()
        return debug_env in ("true", "1", "yes")

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_path: str = os.getenv("DATABASE_PATH", str(Path.home() / ".planwise" / "planwise.db"))
    database_echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"

    # Schedule: IANA timezone used to compute next_run_at for stored cron tasks
    schedule_timezone: str = os.getenv("SCHEDULE_TIMEZONE", "UTC")

    # Reminder sync: sourceModule stamped on schedule tasks owned by the synchronizer
    reminder_source_module: str = os.getenv("REMINDER_SOURCE_MODULE", "task")

    class Config:
        # Load .env from project root (planwise/core/config.py -> parent.parent.parent)
        env_file = str(Path(__file__).resolve().parent.parent.parent / ".env")
        case_sensitive = False
        extra = "ignore"


# Defaults for entry points; components receive settings explicitly.
settings = Settings()


def get_database_url(cfg: Optional[Settings] = None) -> str:
    """Get SQLite database URL."""
    cfg = cfg or settings
    db_path = Path(cfg.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{cfg.database_path}"


def configure_logging(cfg: Optional[Settings] = None) -> None:
    """Configure root logging for CLI and worker entry points."""
    cfg = cfg or settings
    level = logging.DEBUG if cfg.debug else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
