"""
Smart Calendar — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from smartcal/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

DELETE_FALLBACK_CHOICES = ("toggle", "none")


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram (the chat front-end)
    TELEGRAM_BOT_TOKEN: str

    # Single-user organizer: only these Telegram ids may talk to the bot
    ALLOWED_USER_IDS: list[int] = []

    # SQLite key-value store
    DATABASE_PATH: str = "data/smartcal.db"

    TIMEZONE: str = "Europe/Bucharest"

    # Weekday named today: False → today, True → same weekday next week
    ROLLOVER_ON_SAME_DAY: bool = False

    # "sterge X" with no matching event: "toggle" completes a matching todo instead
    DELETE_FALLBACK: str = "toggle"

    # Cosmetic pause between the user's message and the bot reply
    REPLY_DELAY_SECONDS: float = 0.4

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("ROLLOVER_ON_SAME_DAY", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in ("1", "true", "yes", "on")

    @field_validator("DELETE_FALLBACK", mode="before")
    @classmethod
    def parse_delete_fallback(cls, v: str) -> str:
        value = str(v).strip().lower() or "toggle"
        if value not in DELETE_FALLBACK_CHOICES:
            raise ValueError(f"DELETE_FALLBACK must be one of {DELETE_FALLBACK_CHOICES}")
        return value

    @field_validator("REPLY_DELAY_SECONDS", mode="before")
    @classmethod
    def parse_delay(cls, v: str | float) -> float:
        return max(0.0, float(v))


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/smartcal.db"),
        TIMEZONE=os.getenv("TIMEZONE", "Europe/Bucharest"),
        ROLLOVER_ON_SAME_DAY=os.getenv("ROLLOVER_ON_SAME_DAY", "false"),
        DELETE_FALLBACK=os.getenv("DELETE_FALLBACK", "toggle"),
        REPLY_DELAY_SECONDS=os.getenv("REPLY_DELAY_SECONDS", "0.4"),
    )


# Singleton, imported by all other modules as:
#   from smartcal.config import settings
settings = _load_settings()
