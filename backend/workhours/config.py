from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_BACKEND_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_DOTENV_LOADED = False

DEFAULT_TIMEZONE = "Asia/Kolkata"
DEFAULT_HOURS_PER_DAY = 8.0
DEFAULT_LEADING_OUT_ESTIMATE_HOURS = 2.0
DEFAULT_CACHE_TTL_SECONDS = 300


def ensure_backend_env_loaded() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)
    _DOTENV_LOADED = True


def _to_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    text = value.strip()
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        return default


def _to_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    text = value.strip()
    if not text:
        return default
    try:
        return float(text)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    timezone: str = DEFAULT_TIMEZONE
    hours_per_day: float = DEFAULT_HOURS_PER_DAY
    leading_out_estimate_hours: float = DEFAULT_LEADING_OUT_ESTIMATE_HOURS
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS


def get_settings() -> Settings:
    ensure_backend_env_loaded()
    return Settings(
        timezone=(os.getenv("WORKHOURS_TIMEZONE") or DEFAULT_TIMEZONE).strip() or DEFAULT_TIMEZONE,
        hours_per_day=_to_float(os.getenv("WORKHOURS_HOURS_PER_DAY"), DEFAULT_HOURS_PER_DAY),
        leading_out_estimate_hours=_to_float(
            os.getenv("WORKHOURS_LEADING_OUT_ESTIMATE_HOURS"),
            DEFAULT_LEADING_OUT_ESTIMATE_HOURS,
        ),
        cache_ttl_seconds=_to_int(
            os.getenv("WORKHOURS_CACHE_TTL_SECONDS"), DEFAULT_CACHE_TTL_SECONDS
        ),
    )


settings = get_settings()
