"""Celery background tasks."""

import asyncio
import logging
from datetime import UTC, datetime

from celery import shared_task

from storeaway.database import get_db_context
from storeaway.services.availability import sync_all_listings

logger = logging.getLogger(__name__)

_loop: asyncio.AbstractEventLoop | None = None


def run_async(coro):
    """Run async function in sync context.

    One loop per worker process: pooled database connections are bound to
    the loop that opened them.
    """
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


@shared_task(bind=True, max_retries=3)
def sync_listing_availability(self):
    """Re-derive every listing's availability flag from its bookings."""
    try:
        changed = run_async(_sync_listing_availability())
        return {"status": "success", "changed": changed}
    except Exception as exc:
        logger.error(f"Availability sync failed: {exc}")
        raise self.retry(exc=exc, countdown=300)


async def _sync_listing_availability() -> int:
    today = datetime.now(UTC).date()
    async with get_db_context() as db:
        return await sync_all_listings(db, today)
