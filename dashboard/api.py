"""API routes for the dashboard."""

import logging
from typing import Annotated

from fastapi import APIRouter, Query

from core.api import api_route
from dashboard.service import DashboardService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/dashboard/stats", tags=["Dashboard API"])
@api_route(logger)
async def get_dashboard_stats():
    """Active users and movement counts."""
    return await DashboardService().get_stats()


@router.get("/api/dashboard/recent-activity", tags=["Dashboard API"])
@api_route(logger)
async def get_recent_activity(limit: Annotated[int, Query(ge=1, le=100)] = 10):
    """Most recently registered movements across users."""
    activity = await DashboardService.recent_activity(limit)
    return {"activity": activity, "total": len(activity)}
