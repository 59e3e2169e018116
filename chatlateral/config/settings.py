"""chatlateral configuration via environment / .env file."""

from __future__ import annotations

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Relay server ---
    RELAY_HOST: str = "0.0.0.0"
    RELAY_PORT: int = 3000

    # Relay image_message frames as well as text_message frames
    RELAY_IMAGES: bool = True

    # Frames above this size are dropped (data URLs can be large)
    MAX_FRAME_BYTES: int = 5_000_000

    # --- CORS ---
    CORS_ORIGINS: list[str] = ["*"]

    # --- Widget ---
    STORAGE_DIR: str = ".chatlateral"
    SUPPRESS_OWN_ECHO: bool = False

    # --- Observability ---
    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("MAX_FRAME_BYTES", "RELAY_PORT")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v


settings = Settings()
