"""
Background tasks implementation using Celery.

Tasks are organized into modules by function:
- maintenance: retention cleanup and quota counter pruning
"""

# Import task modules so Celery registers @shared_task decorators on startup.
from tasks.maintenance import cleanup_old_movements, prune_daily_counters

__all__ = [
    "cleanup_old_movements",
    "prune_daily_counters",
]
