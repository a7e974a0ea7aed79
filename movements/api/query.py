"""API routes for reading movements and quota status."""

import logging
from datetime import datetime
from typing import Annotated

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, Query

from core.api import api_route
from core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from core.identity import get_current_user_id
from movements.dependencies import get_quota_enforcer
from movements.models import MovementListFilters, SortField
from movements.quota import QuotaEnforcer
from movements.services import MovementQueryService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/movements", tags=["Movements API"])
@api_route(logger)
async def list_movements(
    owner_id: PydanticObjectId = Depends(get_current_user_id),
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    region: str | None = None,
    min_distance: Annotated[float | None, Query(ge=0)] = None,
    max_distance: Annotated[float | None, Query(ge=0)] = None,
    sort_by: SortField = "date",
    sort_order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
):
    """List the caller's movements with filters, paging and lifetime totals."""
    filters = MovementListFilters(
        page=page,
        limit=limit,
        start_date=start_date,
        end_date=end_date,
        region=region,
        min_distance=min_distance,
        max_distance=max_distance,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await MovementQueryService.list_movements(owner_id, filters)


@router.get("/api/movements/quota", tags=["Movements API"])
@api_route(logger)
async def get_quota(
    owner_id: PydanticObjectId = Depends(get_current_user_id),
    quota: QuotaEnforcer = Depends(get_quota_enforcer),
):
    """Today's submission count and remaining slots for the caller."""
    status = await quota.check_quota(owner_id)
    return status.as_dict()


@router.get("/api/movements/{movement_id}", tags=["Movements API"])
@api_route(logger)
async def get_movement(
    movement_id: str,
    owner_id: PydanticObjectId = Depends(get_current_user_id),
):
    """One of the caller's movements with previous/next navigation."""
    return await MovementQueryService.get_movement(owner_id, movement_id)
