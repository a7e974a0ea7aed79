"""Celery application configuration for the movement service.

Redis is the broker and result backend. Celery Beat runs the retention
schedule:
- weekly movement cleanup, Sundays at 03:00
- daily quota counter pruning at 04:00

Both schedules are interpreted in the service time zone.

**Important Security Note:** Celery workers should NOT be run with superuser
(root) privileges. Use the `--uid` option when starting workers.
"""

import logging

from celery import Celery, signals
from celery.schedules import crontab
from celery.utils.log import get_task_logger
from dotenv import load_dotenv
from kombu import Queue

from config import get_movement_policy
from redis_config import get_redis_url, redact_redis_url

load_dotenv()

logger = get_task_logger(__name__)

REDIS_URL = get_redis_url()
logger.info("Configuring Celery with broker: %s", redact_redis_url(REDIS_URL))

task_queues = [
    Queue("default", routing_key="default"),
    Queue("low_priority", routing_key="low_priority"),
]

BEAT_SCHEDULE = {
    "cleanup_old_movements_weekly": {
        "task": "tasks.cleanup_old_movements",
        "schedule": crontab(minute=0, hour=3, day_of_week="sunday"),
        "options": {"queue": "low_priority"},
    },
    "prune_daily_counters_daily": {
        "task": "tasks.prune_daily_counters",
        "schedule": crontab(minute=0, hour=4),
        "options": {"queue": "low_priority"},
    },
}

app = Celery(
    "supervitec",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["tasks"],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=get_movement_policy().timezone,
    enable_utc=True,
    task_queues=task_queues,
    task_default_queue="default",
    task_default_exchange="tasks",
    task_default_routing_key="default",
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    broker_connection_retry_on_startup=True,
    broker_connection_max_retries=10,
    beat_schedule=BEAT_SCHEDULE,
)


@signals.task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **kwargs):
    task_name = sender.name if sender else "unknown"
    logger.error(
        "Task %s (%s) failed: %s",
        task_name,
        task_id,
        exception,
        exc_info=True,
    )


@signals.worker_ready.connect
def worker_ready_handler(**kwargs):
    logger.info("Celery worker is ready and listening for tasks.")


@signals.setup_logging.connect
def setup_logging(**kwargs):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
