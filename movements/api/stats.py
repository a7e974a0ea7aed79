"""API routes for movement statistics."""

import logging

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends

from core.api import api_route
from core.identity import get_current_user_id
from movements.dependencies import get_stats_service
from movements.models import StatsGrouping, StatsPeriod
from movements.services import MovementStatsService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/movements/stats", tags=["Movements API"])
@api_route(logger)
async def get_movement_stats(
    period: StatsPeriod = "7d",
    group_by: StatsGrouping = "day",
    owner_id: PydanticObjectId = Depends(get_current_user_id),
    service: MovementStatsService = Depends(get_stats_service),
):
    """Summary, trends and distributions of the caller's recent movements."""
    return await service.get_stats(owner_id, period, group_by)
