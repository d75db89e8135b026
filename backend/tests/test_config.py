import pytest

from app.core.config import Settings
from app.core.database import engine_options


def test_production_requires_cors_origins() -> None:
    with pytest.raises(ValueError):
        Settings(app_env="production", cors_origins=" , ")

    settings = Settings(app_env="production", cors_origins="https://signalry.example, https://admin.example")
    assert settings.cors_origins_list == ["https://signalry.example", "https://admin.example"]


def test_generator_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.mock_market_count == 25
    assert settings.init_signal_count == 15
    assert settings.signal_volatility_threshold == 0.3
    assert settings.api_prefix == "/api/v1"


def test_in_memory_sqlite_shares_one_connection() -> None:
    options = engine_options("sqlite+aiosqlite://")
    assert options["connect_args"] == {"check_same_thread": False}
    assert "poolclass" in options

    assert engine_options("postgresql+asyncpg://u:p@db/signalry") == {"future": True, "pool_pre_ping": True}
