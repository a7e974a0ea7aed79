"""Business logic for movement statistics over a recent period."""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any

from beanie import PydanticObjectId

from config import MovementPolicy, get_movement_policy
from date_utils import ensure_utc, get_current_utc_time, get_zone
from db.aggregation import aggregate_to_list, round_or_zero
from db.models import Movement
from movements.metrics import efficiency

logger = logging.getLogger(__name__)

PERIOD_DAYS = {"1d": 1, "7d": 7, "30d": 30, "90d": 90}
GROUP_FORMATS = {
    "hour": "%Y-%m-%d %H:00",
    "day": "%Y-%m-%d",
    "week": "%G-W%V",
    "month": "%Y-%m",
}
SPEED_BOUNDARIES = (0, 10, 20, 30, 40, 50, 60, 80, 100, 200)


def speed_bucket(avg_speed_kmh: float) -> str:
    """Label of the average-speed bucket, e.g. ``"20-30"`` or ``"200+"``."""
    for low, high in zip(SPEED_BOUNDARIES, SPEED_BOUNDARIES[1:]):
        if low <= avg_speed_kmh < high:
            return f"{low}-{high}"
    return f"{SPEED_BOUNDARIES[-1]}+"


def _mean(values: list[float], ndigits: int = 2) -> float:
    return round(sum(values) / len(values), ndigits) if values else 0.0


class MovementStatsService:
    """Service class for per-owner movement statistics."""

    def __init__(self, policy: MovementPolicy | None = None) -> None:
        self.policy = policy or get_movement_policy()

    async def get_stats(
        self,
        owner_id: PydanticObjectId,
        period: str = "7d",
        group_by: str = "day",
        *,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Summarize the owner's movements dated within the period.

        Args:
            owner_id: Authenticated owner
            period: One of 1d, 7d, 30d, 90d (unknown values fall back to 7d)
            group_by: Trend bucket: hour, day, week or month

        Returns:
            dict with summary, trends, by_region, by_hour and by_speed blocks
        """
        period = period if period in PERIOD_DAYS else "7d"
        group_by = group_by if group_by in GROUP_FORMATS else "day"
        end = ensure_utc(now) if now else get_current_utc_time()
        start = end - timedelta(days=PERIOD_DAYS[period])
        match = {
            "owner_id": owner_id,
            "deleted": False,
            "date": {"$gte": start, "$lte": end},
        }

        summary = await self._summary(match)
        by_region = await self._by_region(match)
        movements = await Movement.find(match).sort("+date").to_list()

        return {
            "period": period,
            "group_by": group_by,
            "date_range": {"start": start.isoformat(), "end": end.isoformat()},
            "summary": summary,
            "trends": self._trends(movements, GROUP_FORMATS[group_by]),
            "by_region": by_region,
            "by_hour": self._by_hour(movements),
            "by_speed": self._by_speed(movements),
        }

    @staticmethod
    async def _summary(match: dict[str, Any]) -> dict[str, Any]:
        pipeline = [
            {"$match": match},
            {
                "$group": {
                    "_id": None,
                    "total_movements": {"$sum": 1},
                    "total_distance_km": {"$sum": "$claimed_distance_km"},
                    "total_duration_minutes": {"$sum": "$duration_minutes"},
                    "avg_speed_kmh": {"$avg": "$avg_speed_kmh"},
                    "max_speed_kmh": {"$max": "$max_speed_kmh"},
                    "min_speed_kmh": {"$min": "$avg_speed_kmh"},
                    "avg_distance_km": {"$avg": "$claimed_distance_km"},
                    "max_distance_km": {"$max": "$claimed_distance_km"},
                },
            },
        ]
        results = await aggregate_to_list(Movement, pipeline)
        row = results[0] if results else {}
        total_distance = round_or_zero(row.get("total_distance_km"))
        total_minutes = round_or_zero(row.get("total_duration_minutes"))
        avg_speed = round_or_zero(row.get("avg_speed_kmh"))
        return {
            "total_movements": int(row.get("total_movements") or 0),
            "total_distance_km": total_distance,
            "total_duration_minutes": total_minutes,
            "avg_speed_kmh": avg_speed,
            "max_speed_kmh": round_or_zero(row.get("max_speed_kmh")),
            "min_speed_kmh": round_or_zero(row.get("min_speed_kmh")),
            "avg_distance_km": round_or_zero(row.get("avg_distance_km")),
            "max_distance_km": round_or_zero(row.get("max_distance_km")),
            "efficiency": efficiency(total_distance, total_minutes, avg_speed),
        }

    @staticmethod
    async def _by_region(match: dict[str, Any]) -> list[dict[str, Any]]:
        pipeline = [
            {"$match": match},
            {
                "$group": {
                    "_id": "$region_label",
                    "count": {"$sum": 1},
                    "total_distance_km": {"$sum": "$claimed_distance_km"},
                    "avg_speed_kmh": {"$avg": "$avg_speed_kmh"},
                },
            },
            {"$sort": {"count": -1, "_id": 1}},
        ]
        results = await aggregate_to_list(Movement, pipeline)
        return [
            {
                "region": row["_id"],
                "count": row["count"],
                "total_distance_km": round_or_zero(row.get("total_distance_km")),
                "avg_speed_kmh": round_or_zero(row.get("avg_speed_kmh")),
            }
            for row in results
        ]

    def _local(self, moment: datetime) -> datetime:
        return ensure_utc(moment).astimezone(get_zone(self.policy.timezone))

    def _trends(self, movements: list[Movement], fmt: str) -> list[dict[str, Any]]:
        buckets: dict[str, list[Movement]] = defaultdict(list)
        for movement in movements:
            buckets[self._local(movement.date).strftime(fmt)].append(movement)
        return [
            {
                "period": key,
                "count": len(items),
                "distance_km": round(sum(m.claimed_distance_km for m in items), 2),
                "duration_minutes": round(sum(m.duration_minutes for m in items), 2),
                "avg_speed_kmh": _mean([m.avg_speed_kmh for m in items]),
            }
            for key, items in sorted(buckets.items())
        ]

    def _by_hour(self, movements: list[Movement]) -> list[dict[str, Any]]:
        buckets: dict[int, list[Movement]] = defaultdict(list)
        for movement in movements:
            buckets[self._local(movement.date).hour].append(movement)
        return [
            {
                "hour": hour,
                "count": len(items),
                "avg_distance_km": _mean([m.claimed_distance_km for m in items]),
                "avg_speed_kmh": _mean([m.avg_speed_kmh for m in items]),
            }
            for hour, items in sorted(buckets.items())
        ]

    @staticmethod
    def _by_speed(movements: list[Movement]) -> list[dict[str, Any]]:
        buckets: dict[str, list[Movement]] = defaultdict(list)
        for movement in movements:
            buckets[speed_bucket(movement.avg_speed_kmh)].append(movement)
        labels = [
            f"{low}-{high}" for low, high in zip(SPEED_BOUNDARIES, SPEED_BOUNDARIES[1:])
        ] + [f"{SPEED_BOUNDARIES[-1]}+"]
        return [
            {
                "bucket": label,
                "count": len(buckets[label]),
                "avg_distance_km": _mean([m.claimed_distance_km for m in buckets[label]]),
            }
            for label in labels
            if buckets.get(label)
        ]
