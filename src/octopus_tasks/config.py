# src/octopus_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Library code takes values explicitly; only the CLI reads Settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "OCTOPUS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Server ----
    server_url: str
    api_key: Optional[str]
    http_timeout_seconds: float

    # ---- Space context ----
    # Empty (or ["all"]) means unrestricted.
    spaces: List[str]
    include_system: bool

    # ---- Waiting ----
    poll_interval_seconds: float
    wait_timeout_minutes: float

    # ---- Logging ----
    log_level: str
    log_dir: Optional[Path]

    @staticmethod
    def from_env() -> "Settings":
        server_url = _env(_k("SERVER_URL"), "").strip()
        api_key = _env(_k("API_KEY"), "").strip() or None

        return Settings(
            server_url=server_url,
            api_key=api_key,
            http_timeout_seconds=_env_float(_k("HTTP_TIMEOUT_SECONDS"), 30.0),
            spaces=_env_list(_k("SPACES"), []),
            include_system=_env_bool(_k("INCLUDE_SYSTEM"), True),
            poll_interval_seconds=_env_float(_k("POLL_INTERVAL_SECONDS"), 4.0),
            wait_timeout_minutes=_env_float(_k("WAIT_TIMEOUT_MINUTES"), 0.0),
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            log_dir=_env_path(_k("LOG_DIR")),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
