"""Celery worker configuration.

Only periodic maintenance runs here; the booking workflow itself never
waits on a worker.
"""

from celery import Celery
from celery.schedules import crontab

from storeaway.config import settings

# Create Celery app
celery_app = Celery(
    "storeaway_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["storeaway.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes max
    task_soft_time_limit=240,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=3600,
)

if settings.availability_sync_enabled:
    celery_app.conf.beat_schedule = {
        # Free listings whose last booking ended yesterday
        "sync-listing-availability": {
            "task": "storeaway.tasks.sync_listing_availability",
            "schedule": crontab(hour=settings.availability_sync_hour, minute=5),
        },
    }


if __name__ == "__main__":
    celery_app.start()
