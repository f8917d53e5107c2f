"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Team Planner Backend"
    debug: bool = False
    log_level: str = "INFO"
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    decomposition_model: str = "gpt-4o-mini"
    provider_timeout_seconds: float = 30.0
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "teamplanner"
    scheduling_buffer_minutes: int = 15
    feasibility_utilization_cap: float = 0.8
    deadline_margin_days: int = 1


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
