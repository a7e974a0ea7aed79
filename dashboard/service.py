"""Aggregate figures for the supervisors' dashboard."""

import logging
from datetime import datetime
from typing import Any

from config import MovementPolicy, get_movement_policy
from date_utils import day_bounds, get_current_utc_time, local_day_key
from db.models import Movement, User

logger = logging.getLogger(__name__)


class DashboardService:
    """Service class for organisation-wide movement figures."""

    def __init__(self, policy: MovementPolicy | None = None) -> None:
        self.policy = policy or get_movement_policy()

    async def get_stats(self, *, now: datetime | None = None) -> dict[str, Any]:
        now = now or get_current_utc_time()
        start, end = day_bounds(now, self.policy.timezone)

        active_users = await User.find({"active": True}).count()
        total_movements = await Movement.find({"deleted": False}).count()
        movements_today = await Movement.find(
            {"deleted": False, "date": {"$gte": start, "$lte": end}},
        ).count()
        flagged = await Movement.find(
            {"deleted": False, "distance_discrepancy_flagged": True},
        ).count()

        return {
            "active_users": active_users,
            "total_movements": total_movements,
            "movements_today": movements_today,
            "flagged_movements": flagged,
            "day": local_day_key(now, self.policy.timezone),
        }

    @staticmethod
    async def recent_activity(limit: int = 10) -> list[dict[str, Any]]:
        """Latest movements across all users, newest first."""
        movements = (
            await Movement.find({"deleted": False})
            .sort("-created_at")
            .limit(limit)
            .to_list()
        )
        owner_ids = list({m.owner_id for m in movements})
        users = await User.find({"_id": {"$in": owner_ids}}).to_list() if owner_ids else []
        names = {u.id: u.full_name for u in users}

        return [
            {
                "id": str(m.id),
                "owner_id": str(m.owner_id),
                "owner_name": names.get(m.owner_id),
                "date": m.date.isoformat(),
                "region_label": m.region_label,
                "claimed_distance_km": m.claimed_distance_km,
                "distance_discrepancy_flagged": m.distance_discrepancy_flagged,
                "created_at": m.created_at.isoformat(),
            }
            for m in movements
        ]
