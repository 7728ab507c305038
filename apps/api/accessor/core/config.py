from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Accessor API"
    app_env: str = "local"
    database_url: str = "sqlite+pysqlite:///./accessor.db"
    jwt_secret: str = "replace-me"
    jwt_algorithm: str = "HS256"
    log_level: str = "INFO"
    metrics_enabled: bool = False
    authz_policy_backend: str = "auto"
    authz_default_allow: bool = True
    access_denial_mode: Literal["first", "all"] = "first"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()
