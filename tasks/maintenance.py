"""Maintenance tasks for movement data.

This module provides Celery tasks for the retention policy:
- cleanup_old_movements: soft-deletes movements past the retention window and
  purges those past the hard-delete horizon
- prune_daily_counters: removes quota counters of days that can no longer
  receive submissions
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from celery import shared_task
from celery.utils.log import get_task_logger
from dateutil.relativedelta import relativedelta

from config import MovementPolicy, get_movement_policy
from core.async_bridge import run_async_from_sync
from date_utils import get_current_utc_time, local_day_key
from db.models import DailyMovementCounter, Movement

logger = get_task_logger(__name__)

AUTOMATIC_CLEANUP_REASON = "automatic_cleanup"


async def cleanup_old_movements_async(
    policy: MovementPolicy | None = None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Apply the retention windows to the movements collection."""
    policy = policy or get_movement_policy()
    now = now or get_current_utc_time()
    soft_cutoff = now - relativedelta(months=policy.retention_months)
    hard_cutoff = now - relativedelta(years=policy.hard_delete_after_years)

    collection = Movement.get_pymongo_collection()
    hard = await collection.delete_many({"date": {"$lt": hard_cutoff}})
    soft = await collection.update_many(
        {"deleted": False, "date": {"$lt": soft_cutoff}},
        {
            "$set": {
                "deleted": True,
                "deleted_at": now,
                "deleted_reason": AUTOMATIC_CLEANUP_REASON,
            },
        },
    )

    logger.info(
        "Retention cleanup: %d movements soft-deleted (before %s), %d purged (before %s)",
        soft.modified_count,
        soft_cutoff.date().isoformat(),
        hard.deleted_count,
        hard_cutoff.date().isoformat(),
    )
    return {
        "status": "success",
        "soft_deleted": soft.modified_count,
        "hard_deleted": hard.deleted_count,
        "soft_cutoff": soft_cutoff.isoformat(),
        "hard_cutoff": hard_cutoff.isoformat(),
    }


async def prune_daily_counters_async(
    policy: MovementPolicy | None = None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Drop counters older than the oldest day a submission may still carry."""
    policy = policy or get_movement_policy()
    now = now or get_current_utc_time()
    oldest_open = now - timedelta(days=policy.max_submission_age_days + 1)
    cutoff_day = local_day_key(oldest_open, policy.timezone)

    result = await DailyMovementCounter.get_pymongo_collection().delete_many(
        {"day": {"$lt": cutoff_day}},
    )
    logger.info(
        "Pruned %d daily movement counters before %s",
        result.deleted_count,
        cutoff_day,
    )
    return {"status": "success", "deleted": result.deleted_count, "cutoff_day": cutoff_day}


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=300,
    time_limit=1800,
    soft_time_limit=1500,
    name="tasks.cleanup_old_movements",
    queue="low_priority",
)
def cleanup_old_movements(_self, *_args, **_kwargs):
    """Celery task wrapper for the weekly retention cleanup."""
    return run_async_from_sync(cleanup_old_movements_async())


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=300,
    time_limit=600,
    soft_time_limit=540,
    name="tasks.prune_daily_counters",
    queue="low_priority",
)
def prune_daily_counters(_self, *_args, **_kwargs):
    """Celery task wrapper for daily counter pruning."""
    return run_async_from_sync(prune_daily_counters_async())
