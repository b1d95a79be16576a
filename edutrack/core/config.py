from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_ACADEMIC_YEAR_RE = re.compile(r"^(\d{4})-(\d{4})$")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def is_academic_year_name(value: str) -> bool:
    """True for names like '2024-2025' where the second year follows the first."""
    match = _ACADEMIC_YEAR_RE.match(value)
    if match is None:
        return False
    start, end = (int(g) for g in match.groups())
    return end == start + 1


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    token_ttl_minutes: int
    default_academic_year: str | None
    admin_password: str

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
    ttl_raw = _getenv("TOKEN_TTL_MINUTES", "60")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    try:
        token_ttl_minutes = int(ttl_raw)
    except ValueError:
        raise ValueError(
            f"TOKEN_TTL_MINUTES must be an integer (got {ttl_raw!r})"
        ) from None
    if token_ttl_minutes <= 0:
        raise ValueError(
            f"TOKEN_TTL_MINUTES must be positive (got {token_ttl_minutes})"
        )

    default_year = _getenv("DEFAULT_ACADEMIC_YEAR", "") or None
    if default_year is not None and not is_academic_year_name(default_year):
        raise ValueError(
            f"DEFAULT_ACADEMIC_YEAR must look like 2024-2025 (got {default_year!r})"
        )

    database_url = _getenv("DATABASE_URL", "") or None
    redis_url = _getenv("REDIS_URL", "") or None

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_parse_bool("LOG_JSON", _getenv("LOG_JSON", "false")),
        port=port,
        database_url=database_url,
        redis_url=redis_url,
        token_ttl_minutes=token_ttl_minutes,
        default_academic_year=default_year,
        admin_password=_getenv("ADMIN_PASSWORD", "admin-password"),
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
