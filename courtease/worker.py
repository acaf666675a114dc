"""Celery worker configuration.

Runs the periodic expiry sweeps. The HTTP job endpoints run the same sweeps
for deployments driven by an external cron instead of celery beat.
"""

from celery import Celery
from celery.schedules import crontab

from courtease.config import settings

# Create Celery app
celery_app = Celery(
    "courtease_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["courtease.tasks"],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.midtrans_timezone,
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

    # Beat schedule for periodic tasks
    beat_schedule={
        "expire-stale-bookings": {
            "task": "courtease.tasks.expire_stale_bookings",
            "schedule": crontab(minute=f"*/{settings.expiry_sweep_interval_minutes}"),
        },
        "expire-overdue-payments": {
            "task": "courtease.tasks.expire_overdue_payments",
            "schedule": crontab(minute=f"*/{settings.expiry_sweep_interval_minutes}"),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
