import os
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError

__all__ = [
    "StoreSettings",
    "Settings",
    "load_settings",
]


@dataclass(frozen=True)
class StoreSettings:
    """Connection target and limits for the plant store."""

    url: Optional[str]
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: float = 5
    pool_recycle: int = 3600
    connect_timeout: int = 5
    read_timeout: int = 10
    write_timeout: int = 10


@dataclass(frozen=True)
class Settings:
    store: StoreSettings
    retry_after: int = 1
    log_level: str = "INFO"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer (got {raw!r})") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative (got {value})")
    return value


def load_settings() -> Settings:
    """Read settings from the process environment.

    Called once at startup. A missing HORTUS_DB_URL is not rejected here: the
    store refuses to connect without it, which aborts startup.
    """
    url = (os.getenv("HORTUS_DB_URL") or "").strip() or None
    store = StoreSettings(
        url=url,
        pool_size=_int_env("HORTUS_DB_POOL_SIZE", 10),
        max_overflow=_int_env("HORTUS_DB_MAX_OVERFLOW", 20),
        pool_timeout=_int_env("HORTUS_DB_POOL_TIMEOUT", 5),
        pool_recycle=_int_env("HORTUS_DB_POOL_RECYCLE", 3600),
        connect_timeout=_int_env("HORTUS_DB_CONNECT_TIMEOUT", 5),
        read_timeout=_int_env("HORTUS_DB_READ_TIMEOUT", 10),
        write_timeout=_int_env("HORTUS_DB_WRITE_TIMEOUT", 10),
    )
    return Settings(
        store=store,
        retry_after=_int_env("HORTUS_RETRY_AFTER", 1),
        log_level=(os.getenv("HORTUS_LOG_LEVEL") or "INFO").upper(),
    )
