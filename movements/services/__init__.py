"""Movement services."""

from movements.services.movement_crud_service import MovementCrudService
from movements.services.movement_query_service import MovementQueryService
from movements.services.movement_stats_service import MovementStatsService

__all__ = [
    "MovementCrudService",
    "MovementQueryService",
    "MovementStatsService",
]
