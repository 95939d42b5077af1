"""
Runtime configuration for the ServiceHub API.

``Settings`` is a plain dataclass populated from environment variables
by ``Settings.from_env``.  Tests build their own instance directly so
nothing here is read at import time.  Integer settings that are missing,
malformed or non-positive fall back to their defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_DB_PATH = str(Path(__file__).resolve().parents[1] / "data" / "servicehub.sqlite3")
DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/search"

# The process listens on one fixed port.
SERVICE_PORT = 8080


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _parse_csv_env(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Application settings."""

    project_name: str = "ServiceHub API"
    api_version: str = "1.0.0"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    database_path: str = DEFAULT_DB_PATH
    session_ttl_hours: int = 24
    session_cookie_name: str = "servicehub_session"
    # PBKDF2 rounds; the default keeps a single verification around 100ms+.
    password_hash_iterations: int = 390_000
    host: str = "0.0.0.0"
    port: int = SERVICE_PORT
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    trusted_hosts: List[str] = field(default_factory=lambda: ["*"])
    geocoder_url: str = DEFAULT_GEOCODER_URL
    geocoder_country: str = "india"
    geocoder_timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            project_name=os.getenv("PROJECT_NAME", "ServiceHub API"),
            api_version=os.getenv("API_VERSION", "1.0.0"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            database_path=os.getenv("SERVICEHUB_DB_PATH", DEFAULT_DB_PATH),
            session_ttl_hours=_env_int("SESSION_TTL_HOURS", 24),
            session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "servicehub_session"),
            password_hash_iterations=_env_int("PASSWORD_HASH_ITERATIONS", 390_000),
            host=os.getenv("HOST", "0.0.0.0"),
            cors_origins=_parse_csv_env("CORS_ORIGINS", "*"),
            trusted_hosts=_parse_csv_env("TRUSTED_HOSTS", "*"),
            geocoder_url=os.getenv("GEOCODER_URL", DEFAULT_GEOCODER_URL),
            geocoder_country=os.getenv("GEOCODER_COUNTRY", "india"),
            geocoder_timeout_seconds=_env_float("GEOCODER_TIMEOUT_SECONDS", 10.0),
        )
