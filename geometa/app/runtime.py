"""Bootstrap logic for the memorizer status report."""

from __future__ import annotations

import asyncio
import logging

from geometa.app.settings import AppSettings
from geometa.db import Database, run_migrations_if_needed
from geometa.memorizer.selection import DueQueueSelector
from geometa.memorizer.service import MemorizerService


LOGGER = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    """Set up project-wide logging configuration."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        level=log_level,
    )


def build_service(database: Database, settings: AppSettings) -> MemorizerService:
    selector = DueQueueSelector(fallback_pool_size=settings.fallback_pool_size)
    return MemorizerService(database.session_factory, selector=selector)


async def _report(settings: AppSettings) -> None:
    async with Database(settings.database_url, echo=settings.sql_echo) as database:
        service = build_service(database, settings)
        counts = await service.due_counts()
        LOGGER.info(
            "Due now: %d new, %d review, %d lapsed (of %d cards).",
            counts.new_due,
            counts.review_due,
            counts.lapsed_due,
            counts.total,
        )
        stats = await service.daily_stats()
        if stats:
            latest = stats[-1]
            LOGGER.info(
                "Last review day %s: %d reviews, %.0f%% successful.",
                latest.day.isoformat(),
                latest.count,
                latest.success_rate * 100,
            )
        else:
            LOGGER.info("No reviews recorded yet.")


def run_report(settings: AppSettings) -> None:
    """Apply migrations and log the current state of the review queue."""
    _configure_logging(settings.log_level)
    LOGGER.info("%s is running in %s mode.", settings.app_name, settings.app_env)

    try:
        run_migrations_if_needed(database_url=settings.database_url)
    except Exception:
        LOGGER.exception("Database migrations failed. Aborting startup.")
        raise

    asyncio.run(_report(settings))
