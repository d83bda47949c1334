"""Engine Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache): single instance per process
    - max_concurrency >= 1
    - log_format is lower-case ("json" or "text")
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Prop engine settings from PAGEPROPS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PAGEPROPS_", env_file=".env", case_sensitive=False,
        extra="ignore",
    )

    # Resolution
    max_concurrency: int = 8

    # Once cache
    once_cache_prefix: str = "pageprops.once"
    session_id_key: str = "pageprops.session_id"

    # Page envelope defaults
    encrypt_history: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("max_concurrency")
    @classmethod
    def check_max_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrency must be at least 1")
        return v

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: str) -> str:
        return v.lower() if isinstance(v, str) else v


@lru_cache
def get_settings() -> Settings:
    return Settings()
