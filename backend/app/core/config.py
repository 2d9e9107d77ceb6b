"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Schedule Advisor Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://postgres@localhost:5432/schedule_advisor"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "schedule-advisor"
    scheduling_timezone: str = "UTC"
    scheduling_lookahead_days: int = 30
    scheduling_slot_search_days: int = 7
    scheduling_task_limit: int = 50


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
