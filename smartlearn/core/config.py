from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]
StoreBackend = Literal["memory", "sql", "redis"]

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./smartlearn.db"

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name, "true" if default else "false").lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    store_backend: StoreBackend
    database_url: str
    redis_url: str | None
    seed_on_startup: bool = False

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")
    backend_raw = _getenv("STORE_BACKEND", "memory").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if backend_raw not in ("memory", "sql", "redis"):
        raise ValueError(
            f"STORE_BACKEND must be memory|sql|redis (got {backend_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    database_url = _getenv("DATABASE_URL", "") or DEFAULT_DATABASE_URL
    redis_url = _getenv("REDIS_URL", "") or None

    if backend_raw == "redis" and redis_url is None:
        raise ValueError("REDIS_URL is required when STORE_BACKEND=redis")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", False),
        port=port,
        store_backend=backend_raw,
        database_url=database_url,
        redis_url=redis_url,
        seed_on_startup=_getenv_bool("SEED_ON_STARTUP", False),
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
