from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import quote

DEFAULT_VT_BASE_URL = "https://www.virustotal.com/api/v3/urls"
_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _database_url_from_parts() -> str | None:
    host = os.getenv("LINKCHECK_DB_HOST", "").strip()
    name = os.getenv("LINKCHECK_DB_NAME", "").strip()
    if not host or not name:
        return None

    user = os.getenv("LINKCHECK_DB_USER", "").strip()
    password = os.getenv("LINKCHECK_DB_PASS", "")
    port = _env_int("LINKCHECK_DB_PORT", 5432)

    auth = ""
    if user:
        auth = quote(user, safe="")
        if password:
            auth += ":" + quote(password, safe="")
        auth += "@"
    return f"postgresql://{auth}{host}:{port}/{name}"


def _cors_allow_origins() -> list[str]:
    raw = os.getenv("LINKCHECK_CORS_ORIGINS", "").strip()
    if not raw:
        return ["http://localhost:3000"]
    return [o.strip() for o in raw.split(",") if o.strip()]


def _log_level() -> str:
    level = (os.getenv("LINKCHECK_LOG_LEVEL", "") or "").strip().upper()
    return level if level in _VALID_LOG_LEVELS else "INFO"


@dataclass(frozen=True)
class Settings:
    database_url: str | None
    db_pool_min: int
    db_pool_max: int
    db_query_timeout_s: float
    db_bootstrap: bool
    vt_api_key: str
    vt_base_url: str
    vt_timeout_s: float
    cors_origins: list[str]
    log_level: str

    @classmethod
    def from_env(cls) -> Settings:
        database_url = (os.getenv("LINKCHECK_DATABASE_URL", "") or "").strip() or _database_url_from_parts()
        pool_min = max(1, _env_int("LINKCHECK_DB_POOL_MIN", 1))
        pool_max = max(pool_min, _env_int("LINKCHECK_DB_POOL_MAX", 5))
        return cls(
            database_url=database_url,
            db_pool_min=pool_min,
            db_pool_max=pool_max,
            db_query_timeout_s=max(0.1, _env_float("LINKCHECK_DB_QUERY_TIMEOUT_S", 2.0)),
            db_bootstrap=os.getenv("LINKCHECK_DB_BOOTSTRAP", "0") == "1",
            vt_api_key=(os.getenv("VT_API_KEY", "") or "").strip(),
            vt_base_url=(os.getenv("VT_BASE_URL", "") or "").strip() or DEFAULT_VT_BASE_URL,
            vt_timeout_s=max(0.1, _env_float("VT_TIMEOUT_S", 10.0)),
            cors_origins=_cors_allow_origins(),
            log_level=_log_level(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
