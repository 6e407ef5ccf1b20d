# postapi/config.py
"""
Runtime configuration for the Post API.

Values come from environment variables prefixed with ``POSTAPI_`` or from a
local ``.env`` file, e.g.::

    POSTAPI_DATABASE_URL=sqlite:///db.sqlite
    POSTAPI_PORT=8080
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="POSTAPI_",
        env_file=".env",
        extra="ignore",
    )

    title: str = "Post API"
    version: str = "1.0.0"
    description: str = "Create, list and delete posts."

    database_url: str = "sqlite:///db.sqlite"  # file in project root
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Reads are retried on store failure; writes never are.
    read_attempts: int = Field(default=3, ge=1)


@lru_cache
def get_settings() -> Settings:
    return Settings()
