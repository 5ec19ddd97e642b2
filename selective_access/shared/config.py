from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


load_dotenv()


DEFAULT_APP_URL = "https://keen-horse-21743a.netlify.app"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _json_list(name: str, default: list[str]) -> list[str]:
    value = _env(name)
    if not value:
        return default
    parsed = json.loads(value)
    if not isinstance(parsed, list):
        raise ValueError(f"{name} must be a JSON list.")
    return [str(item) for item in parsed]


@dataclass(frozen=True)
class Settings:
    stripe_secret_key: str
    stripe_webhook_secret: str
    supabase_url: str
    supabase_service_role_key: str
    supabase_anon_key: str
    postgres_dsn: str
    app_default_url: str
    temporary_access_hours: int
    pending_grace_hours: int
    http_timeout_seconds: float
    cron_secret: str
    cors_allow_origins: list[str]
    log_level: str


def load_settings() -> Settings:
    return Settings(
        stripe_secret_key=_env("STRIPE_SECRET_KEY", ""),
        stripe_webhook_secret=_env("STRIPE_WEBHOOK_SECRET", ""),
        supabase_url=_env("SUPABASE_URL", "") or _env("VITE_SUPABASE_URL", ""),
        supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY", ""),
        supabase_anon_key=_env("SUPABASE_ANON_KEY", ""),
        postgres_dsn=_env("POSTGRES_DSN", ""),
        app_default_url=_env("APP_DEFAULT_URL", DEFAULT_APP_URL),
        temporary_access_hours=int(_env("TEMPORARY_ACCESS_HOURS", "24")),
        pending_grace_hours=int(_env("PENDING_GRACE_HOURS", "24")),
        http_timeout_seconds=float(_env("HTTP_TIMEOUT_SECONDS", "10")),
        cron_secret=_env("CRON_SECRET", ""),
        cors_allow_origins=_json_list("CORS_ALLOW_ORIGINS", ["*"]),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
