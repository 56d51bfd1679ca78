# src/pagemail_client/config.py

"""Settings for the watch client, read from PAGEMAIL_* environment variables (+ .env).

- One frozen Settings object per process (get_settings()).
- Nothing is required at import time: a missing token only produces a warning at startup.
- Malformed values fall back to defaults instead of failing, the poller does the same
  with invalid intervals.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "PAGEMAIL"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment wins over .env.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_seconds(name: str, default: float) -> float:
    """Positive, finite duration in seconds; anything else means the default."""
    value = _env_float(name, default)
    if not math.isfinite(value) or value <= 0:
        return default
    return value


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- PageMail API ----
    api_base_url: str
    api_token: Optional[str]
    http_timeout_seconds: float
    page_size: int

    # ---- Polling (task list) ----
    poll_interval_seconds: float
    poll_pending_interval_seconds: float
    poll_immediate: bool

    # ---- Polling (task detail views) ----
    detail_interval_seconds: float
    detail_pending_interval_seconds: float

    # ---- Connector flags ----
    console_enabled: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "pagemail")
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pagemail"))

        api_base_url = _env(_k("API_BASE_URL"), "http://localhost:8080/api").rstrip("/")
        # Accept PAGEMAIL_TOKEN as a shorter alias.
        api_token = _first_env(_k("API_TOKEN"), _k("TOKEN"), default=None)
        http_timeout_seconds = _env_seconds(_k("HTTP_TIMEOUT_SECONDS"), 30.0)
        page_size = max(1, _env_int(_k("PAGE_SIZE"), 20))

        poll_interval_seconds = _env_seconds(_k("POLL_INTERVAL_SECONDS"), 10.0)
        poll_pending_interval_seconds = _env_seconds(_k("POLL_PENDING_INTERVAL_SECONDS"), 5.0)
        poll_immediate = _env_bool(_k("POLL_IMMEDIATE"), True)

        # Detail views default to the list cadence unless overridden.
        detail_interval_seconds = _env_seconds(_k("DETAIL_INTERVAL_SECONDS"), poll_interval_seconds)
        detail_pending_interval_seconds = _env_seconds(
            _k("DETAIL_PENDING_INTERVAL_SECONDS"),
            poll_pending_interval_seconds,
        )

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            api_base_url=api_base_url,
            api_token=api_token,
            http_timeout_seconds=http_timeout_seconds,
            page_size=page_size,
            poll_interval_seconds=poll_interval_seconds,
            poll_pending_interval_seconds=poll_pending_interval_seconds,
            poll_immediate=poll_immediate,
            detail_interval_seconds=detail_interval_seconds,
            detail_pending_interval_seconds=detail_pending_interval_seconds,
            console_enabled=console_enabled,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
