"""
Runtime configuration for SDR Pulse.
Values come from the environment (and the project root .env file).

Usage:
    from scripts.lib.config import get_settings
    settings = get_settings()
    tz = settings.tz
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from scripts.lib.errors import ConfigError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(PROJECT_ROOT / ".env")


DEFAULT_CONFIG = {
    "timezone": "Australia/Melbourne",
    "delta_outlier_cap": 999.0,
    "inactive_threshold_minutes": 60,
    "business_hours": "9-17",
    "recent_activity_minutes": 5,
    "fetch_page_size": 1000,
    "dashboard_port": 8001,
    "sql_notifications": True,
}


@dataclass(frozen=True)
class Settings:
    timezone: str
    delta_outlier_cap: float
    inactive_threshold_minutes: int
    business_hours: Tuple[int, int]
    recent_activity_minutes: int
    fetch_page_size: int
    dashboard_port: int
    slack_webhook_url: str = ""
    sql_notifications: bool = True

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _int_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}", key=key)


def _float_env(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}", key=key)


def _bool_env(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{key} must be true or false, got {raw!r}", key=key)


def parse_business_hours(raw: str) -> Tuple[int, int]:
    """Parse "9-17" into (9, 17)."""
    try:
        start, end = (int(part) for part in raw.split("-", 1))
    except ValueError:
        raise ConfigError(
            f"BUSINESS_HOURS must look like '9-17', got {raw!r}", key="BUSINESS_HOURS",
        )
    if not 0 <= start < end <= 24:
        raise ConfigError(
            f"BUSINESS_HOURS out of range: {raw!r}", key="BUSINESS_HOURS",
        )
    return start, end


def load_settings() -> Settings:
    """Build settings from the environment, falling back to DEFAULT_CONFIG."""
    timezone = os.getenv("ANALYTICS_TIMEZONE", DEFAULT_CONFIG["timezone"])
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigError(f"Unknown timezone: {timezone}", key="ANALYTICS_TIMEZONE")

    return Settings(
        timezone=timezone,
        delta_outlier_cap=_float_env(
            "DELTA_OUTLIER_CAP", DEFAULT_CONFIG["delta_outlier_cap"]
        ),
        inactive_threshold_minutes=_int_env(
            "INACTIVE_THRESHOLD_MINUTES", DEFAULT_CONFIG["inactive_threshold_minutes"]
        ),
        business_hours=parse_business_hours(
            os.getenv("BUSINESS_HOURS", DEFAULT_CONFIG["business_hours"])
        ),
        recent_activity_minutes=_int_env(
            "RECENT_ACTIVITY_MINUTES", DEFAULT_CONFIG["recent_activity_minutes"]
        ),
        fetch_page_size=_int_env("FETCH_PAGE_SIZE", DEFAULT_CONFIG["fetch_page_size"]),
        dashboard_port=_int_env("DASHBOARD_PORT", DEFAULT_CONFIG["dashboard_port"]),
        slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL", ""),
        sql_notifications=_bool_env(
            "SQL_NOTIFICATIONS", DEFAULT_CONFIG["sql_notifications"]
        ),
    )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return load_settings()
