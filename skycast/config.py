"""
SkyCast — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from skycast/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # OpenWeather
    OPENWEATHER_API_KEY: str
    WEATHER_LANG: str = "en"
    WEATHER_UNITS: str = "metric"
    FETCH_TIMEOUT_SECONDS: float = 10.0

    # Subscriber store (JSON file)
    DATA_PATH: str = "users.json"

    # Scheduler
    TICK_SECONDS: float = 60.0
    BROADCAST_TIMES: list[str] = ["12:00", "18:00"]

    # Security: empty list means the bot is open to everyone
    ALLOWED_USER_IDS: list[int] = []

    # Secret phrase that switches a subscriber to affectionate mode
    AFFECTIONATE_CODE: str = "<3cute<3"

    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("BROADCAST_TIMES", mode="before")
    @classmethod
    def parse_broadcast_times(cls, v: str | list[str]) -> list[str]:
        from skycast.core.timeutil import normalize_time

        if isinstance(v, str):
            v = [t.strip() for t in v.split(",") if t.strip()]
        return [normalize_time(t) for t in v]

    @field_validator("TICK_SECONDS", "FETCH_TIMEOUT_SECONDS", mode="before")
    @classmethod
    def parse_seconds(cls, v: str | float) -> float:
        seconds = float(v)
        if seconds <= 0:
            raise ValueError("must be positive")
        return seconds


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")
    weather_key = os.getenv("OPENWEATHER_API_KEY", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    if not weather_key or weather_key.startswith("your-"):
        print("ERROR: OPENWEATHER_API_KEY is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        OPENWEATHER_API_KEY=weather_key,
        WEATHER_LANG=os.getenv("WEATHER_LANG", "en"),
        WEATHER_UNITS=os.getenv("WEATHER_UNITS", "metric"),
        FETCH_TIMEOUT_SECONDS=os.getenv("FETCH_TIMEOUT_SECONDS", "10"),
        DATA_PATH=os.getenv("DATA_PATH", "users.json"),
        TICK_SECONDS=os.getenv("TICK_SECONDS", "60"),
        BROADCAST_TIMES=os.getenv("BROADCAST_TIMES", "12:00,18:00"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        AFFECTIONATE_CODE=os.getenv("AFFECTIONATE_CODE", "<3cute<3"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton, imported by all other modules as:
#   from skycast.config import settings
settings = _load_settings()
