#relay_control\infrastructure\sql\config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Any SQLAlchemy URL; PostgreSQL in production fleets, SQLite on a single host
    database_url: str = "sqlite:////var/lib/relay-control/panel.db"

    # Connection pool (ignored for SQLite)
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 3600

    # SQLAlchemy
    echo_sql: bool = False


settings = DatabaseSettings()
