import os
from functools import lru_cache
from typing import Mapping
from urllib.parse import quote_plus

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DATABASE_URL_PLACEHOLDER = "REPLACE_WITH_STRONG_DB_PASSWORD"


def resolve_database_url(
    *,
    database_url: str | None,
    postgres_user: str | None,
    postgres_password: str | None,
    postgres_host: str | None = "db",
    postgres_port: int | str | None = "5432",
    postgres_db: str | None = "signalry",
) -> tuple[str, str]:
    raw_database_url = (database_url or "").strip()
    if raw_database_url and DATABASE_URL_PLACEHOLDER not in raw_database_url:
        return raw_database_url, "env"

    user = quote_plus((postgres_user or "signalry").strip())
    password = quote_plus((postgres_password or "signalry").strip())
    host = (postgres_host or "db").strip() or "db"
    port = str(postgres_port or "5432").strip() or "5432"
    db_name = (postgres_db or "signalry").strip() or "signalry"
    constructed = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db_name}"
    return constructed, "postgres_fallback"


def resolve_database_url_from_env(
    env: Mapping[str, str] | None = None,
    *,
    default_database_url: str | None = None,
) -> tuple[str, str]:
    source_env = os.environ if env is None else env
    database_url = source_env.get("DATABASE_URL", default_database_url or "")
    return resolve_database_url(
        database_url=database_url,
        postgres_user=source_env.get("POSTGRES_USER"),
        postgres_password=source_env.get("POSTGRES_PASSWORD"),
        postgres_host=source_env.get("POSTGRES_HOST", "db"),
        postgres_port=source_env.get("POSTGRES_PORT", "5432"),
        postgres_db=source_env.get("POSTGRES_DB", "signalry"),
    )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @model_validator(mode="after")
    def _check_production_cors(self) -> "Settings":
        if self.app_env == "production" and not self.cors_origins_list:
            raise ValueError("CORS_ORIGINS must list at least one origin in production.")
        return self

    app_env: str = "development"
    app_name: str = "Signalry API"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"
    request_logging_enabled: bool = True

    cors_origins: str = "*"
    cors_max_age_seconds: int = 600
    trusted_proxies: str = "127.0.0.1"
    rate_limit_requests_per_minute: int = 180

    database_url: str = ""
    postgres_user: str = "signalry"
    postgres_password: str = "signalry"
    postgres_host: str = "db"
    postgres_port: int = 5432
    postgres_db: str = "signalry"
    redis_url: str = "redis://redis:6379/0"
    auto_create_tables: bool = False

    # ── Mock data generation ──────────────────────────────────────
    mock_market_count: int = 25
    init_signal_count: int = 15
    generate_default_count: int = 5
    generate_max_count: int = 100
    signal_volatility_threshold: float = 0.3
    market_polling_cadence_ms: int = 10000

    # ── Background signal poller ──────────────────────────────────
    poller_signal_count: int = 5
    poll_interval_seconds: int = 30
    poll_interval_idle_seconds: int = 120
    signal_retention_minutes: int = 240

    # ── Feed client ───────────────────────────────────────────────
    feed_base_url: str = "http://localhost:8000/api/v1"
    feed_refresh_seconds: float = 30.0
    feed_timeout_seconds: float = 10.0
    feed_retry_attempts: int = 3
    feed_retry_backoff_seconds: float = 0.5

    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = 0.1

    @property
    def cors_origins_list(self) -> list[str]:
        return [v.strip() for v in self.cors_origins.split(",") if v.strip()]

    @property
    def trusted_proxies_list(self) -> list[str]:
        return [v.strip() for v in self.trusted_proxies.split(",") if v.strip()]

    @property
    def resolved_database_url(self) -> str:
        url, _source = resolve_database_url(
            database_url=self.database_url,
            postgres_user=self.postgres_user,
            postgres_password=self.postgres_password,
            postgres_host=self.postgres_host,
            postgres_port=self.postgres_port,
            postgres_db=self.postgres_db,
        )
        return url

    @property
    def resolved_database_url_source(self) -> str:
        _url, source = resolve_database_url(
            database_url=self.database_url,
            postgres_user=self.postgres_user,
            postgres_password=self.postgres_password,
            postgres_host=self.postgres_host,
            postgres_port=self.postgres_port,
            postgres_db=self.postgres_db,
        )
        return source


@lru_cache
def get_settings() -> Settings:
    return Settings()
