# backend/scheduler/config.py

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/scheduler.db"
    redis_url: Optional[str] = None

    # Slot grid
    slot_step_minutes: int = 30
    buffer_minutes: int = 0
    min_advance_minutes: int = 0

    # Late-arrival checker
    late_tolerance_minutes: int = 15
    late_checker_enabled: bool = False
    late_check_interval_seconds: int = 60

    view_cache_ttl_seconds: int = 300
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path is anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
