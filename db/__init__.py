"""Database package for MongoDB operations using Beanie ODM.

Modules:
    manager: DatabaseManager singleton for connection handling
    models: Beanie Document models for all collections
    aggregation: Aggregation pipeline helpers

Usage:
    from db.models import Movement

    movement = await Movement.get(movement_id)
"""

from db.aggregation import aggregate_to_list, round_or_zero
from db.manager import DatabaseManager, db_manager
from db.models import (
    ALL_DOCUMENT_MODELS,
    DailyMovementCounter,
    LocationPoint,
    Movement,
    User,
    Waypoint,
)

__all__ = [
    "ALL_DOCUMENT_MODELS",
    "DailyMovementCounter",
    "DatabaseManager",
    "LocationPoint",
    "Movement",
    "User",
    "Waypoint",
    "aggregate_to_list",
    "db_manager",
    "round_or_zero",
]
