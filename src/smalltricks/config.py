"""Runtime configuration for the SmallTricks tools."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from smalltricks.domain.enums import SetupMode


class Settings(BaseSettings):
    """Settings read from ``SMALLTRICKS_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="SMALLTRICKS_", env_file=".env", env_file_encoding="utf-8"
    )

    log_level: str = Field(default="INFO", description="Root logging level for the CLI")
    setup_mode: SetupMode = Field(
        default=SetupMode.DEMO, description="How armies are chosen and placed before round 1"
    )
    seed: str = Field(
        default="smalltricks",
        description="Root seed for random armies, random placement and the draft pool",
    )
    max_rounds: int = Field(
        default=50,
        description="Safety cap on rounds when the headless runner plays a game",
        gt=0,
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
