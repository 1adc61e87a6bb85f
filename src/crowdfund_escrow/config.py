"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup — if a setting is malformed, the app fails fast with a clear
error message.

Usage:
    from crowdfund_escrow.config import get_settings
    settings = get_settings()
    print(settings.database_url)
"""

from __future__ import annotations

from datetime import UTC, datetime
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the Crowdfund Escrow service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # --- Database ---
    # PostgreSQL via asyncpg in deployments; sqlite+aiosqlite works for local runs.
    database_url: str = (
        "postgresql+asyncpg://crowdfund:crowdfund_dev"
        "@localhost:5432/crowdfund_escrow"
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    # --- Ledger ---
    native_asset: str = "EGLD"
    claim_memo: str = "claim"
    # Block height is derived from wall-clock time since genesis.
    genesis_timestamp: datetime = datetime(2024, 1, 1, tzinfo=UTC)
    block_time_seconds: int = 6

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def claim_memo_bytes(self) -> bytes:
        return self.claim_memo.encode()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
