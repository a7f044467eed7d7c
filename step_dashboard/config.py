"""Runtime configuration.

Values come from the process environment, which `load_dotenv()` fills from a
local `.env` file (SUPABASE_URL + SUPABASE_ANON_KEY at minimum). On Streamlit
Cloud the same keys can live in `st.secrets`; the entry point passes them in
as `fallback`.
"""

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("SUPABASE_URL", "SUPABASE_ANON_KEY")


class ConfigError(RuntimeError):
    """Raised when a required setting is missing."""


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_anon_key: str
    steps_table: str = "steps"
    user_field: str = "userId"
    display_tz: str = "UTC"
    recent_limit: int = 5
    connect_timeout: float = 3.0
    log_level: str = "INFO"

    @property
    def tz(self) -> tzinfo:
        return ZoneInfo(self.display_tz)


def _int(raw: Optional[str], default: int, name: str) -> int:
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r; using %s", name, raw, default)
        return default


def _float(raw: Optional[str], default: float, name: str) -> float:
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r; using %s", name, raw, default)
        return default


def _timezone_name(raw: Optional[str]) -> str:
    if not raw:
        return "UTC"
    try:
        ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("ZoneInfo '%s' not available; falling back to UTC.", raw)
        return "UTC"
    return raw


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    fallback: Optional[Mapping[str, str]] = None,
    dotenv: bool = True,
) -> Settings:
    """Build `Settings` from `env` (default: os.environ), then `fallback`."""
    if env is None:
        if dotenv:
            load_dotenv()
        env = os.environ
    fallback = fallback or {}

    def get(key: str, default: Optional[str] = None) -> Optional[str]:
        value = env.get(key)
        if value in (None, ""):
            value = fallback.get(key, default)
        return value

    missing = [key for key in REQUIRED_KEYS if not get(key)]
    if missing:
        raise ConfigError("Missing required setting(s): " + ", ".join(missing))

    return Settings(
        supabase_url=get("SUPABASE_URL"),
        supabase_anon_key=get("SUPABASE_ANON_KEY"),
        steps_table=get("STEPS_TABLE") or "steps",
        user_field=get("STEPS_USER_FIELD") or "userId",
        display_tz=_timezone_name(get("DISPLAY_TZ")),
        recent_limit=_int(get("RECENT_LIMIT"), 5, "RECENT_LIMIT"),
        connect_timeout=_float(get("CONNECT_TIMEOUT"), 3.0, "CONNECT_TIMEOUT"),
        log_level=(get("LOG_LEVEL") or "INFO").upper(),
    )
