from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class TapiSettings(BaseSettings):
    """Generator defaults, overridable through TAPI_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="TAPI_", env_file=".env", extra="ignore")

    log_level: str = "WARNING"
    default_target: str = "ts"
    client_name: str = "api"


@lru_cache(maxsize=1)
def get_settings() -> TapiSettings:
    return TapiSettings()
