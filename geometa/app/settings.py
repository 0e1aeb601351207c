"""Configuration helpers for the GeoMeta Memorizer runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass

from geometa.db import get_database_url, should_echo_sql
from geometa.memorizer.selection import DEFAULT_FALLBACK_POOL_SIZE


MAX_FALLBACK_POOL_SIZE = 100


@dataclass(frozen=True)
class AppSettings:
    """Strongly typed application settings loaded from environment variables."""

    app_name: str
    app_env: str
    log_level: str
    database_url: str
    sql_echo: bool
    fallback_pool_size: int

    @classmethod
    def from_env(cls) -> AppSettings:
        """Construct settings directly from environment variables."""
        app_name = os.getenv("APP_NAME", "GeoMeta Memorizer")
        app_env = os.getenv("APP_ENV", "development")
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        database_url = get_database_url()

        try:
            fallback_pool_size = int(
                os.getenv("MEMORIZER_FALLBACK_POOL_SIZE", str(DEFAULT_FALLBACK_POOL_SIZE))
            )
        except ValueError as exc:
            raise RuntimeError("MEMORIZER_FALLBACK_POOL_SIZE must be an integer.") from exc
        if fallback_pool_size < 1 or fallback_pool_size > MAX_FALLBACK_POOL_SIZE:
            raise RuntimeError(
                f"MEMORIZER_FALLBACK_POOL_SIZE must be between 1 and {MAX_FALLBACK_POOL_SIZE}."
            )

        return cls(
            app_name=app_name,
            app_env=app_env,
            log_level=log_level,
            database_url=database_url,
            sql_echo=should_echo_sql(),
            fallback_pool_size=fallback_pool_size,
        )
