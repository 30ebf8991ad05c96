"""Celery tasks for scheduled visibility polling.

Each task runs the same VisibilityPoller as the HTTP route, inside a fresh
event loop with its own database handle and fetcher.
"""

import asyncio
import logging

from sqlalchemy import select

from app.collectors.factory import build_fetcher
from app.core.config import settings
from app.core.exceptions import AppError
from app.db.postgres import Database
from app.models.brand import Brand
from app.services.visibility_poller import VisibilityPoller
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _run_async(coro):
    """Run an async coroutine from sync Celery task context.

    Creates a fresh event loop each time; engines and locks are created
    inside the coroutine so they bind to that loop.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _poll_brand_async(
    brand_id: int,
    database: Database | None = None,
    poller: VisibilityPoller | None = None,
) -> dict:
    owns_database = database is None
    database = database or Database.from_settings(settings)
    fetcher = None
    if poller is None:
        fetcher = build_fetcher(settings)
        poller = VisibilityPoller(
            fetcher,
            concurrency=settings.poll_concurrency,
            fetch_timeout=settings.fetch_timeout_seconds,
            max_retries=settings.fetch_max_retries,
            retry_backoff=settings.fetch_retry_backoff,
        )

    try:
        async with database.session_factory() as db:
            result = await poller.run_poll(db, brand_id)
        return {
            "brand_id": brand_id,
            "new_answers": result.new_answers,
            "failed_fetches": result.failed_fetches,
            "errors": result.errors,
        }
    finally:
        if fetcher is not None:
            await fetcher.aclose()
        if owns_database:
            await database.dispose()


async def _list_brand_ids(database: Database | None = None) -> list[int]:
    owns_database = database is None
    database = database or Database.from_settings(settings)
    try:
        async with database.session_factory() as db:
            return list((await db.scalars(select(Brand.id).order_by(Brand.id))).all())
    finally:
        if owns_database:
            await database.dispose()


@celery_app.task(bind=True, name="poll_brand_visibility", max_retries=0)
def poll_brand_visibility_task(self, brand_id: int):
    """Celery task: poll all engines for one brand and refresh today's snapshots.

    Fetch failures are handled inside the poll (skip and continue), so Celery-level
    retries are disabled to avoid writing duplicate answers.
    """
    logger.info("Starting visibility poll for brand %d", brand_id)
    try:
        result = _run_async(_poll_brand_async(brand_id))
        logger.info("Visibility poll done for brand %d: %s", brand_id, result)
        return result
    except AppError as exc:
        logger.error("Visibility poll failed for brand %d: %s", brand_id, exc.detail)
        return {"error": exc.detail, "brand_id": brand_id}


@celery_app.task(name="poll_all_brands")
def poll_all_brands_task():
    """Beat entry point: fan out one poll task per brand."""
    brand_ids = _run_async(_list_brand_ids())
    for brand_id in brand_ids:
        poll_brand_visibility_task.delay(brand_id)
    logger.info("Dispatched visibility polls for %d brand(s)", len(brand_ids))
    return {"dispatched": len(brand_ids), "brand_ids": brand_ids}
