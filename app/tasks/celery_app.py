from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

celery_app = Celery(
    "ai_visibility",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)

# Celery Beat schedule: one visibility poll of every brand per day
celery_app.conf.beat_schedule = {
    "poll-all-brands": {
        "task": "poll_all_brands",
        "schedule": crontab(hour=settings.poll_schedule_hour, minute=0),
    },
}

# Explicit include (needed for CLI worker startup)
celery_app.conf.include = [
    "app.tasks.visibility_tasks",
]
