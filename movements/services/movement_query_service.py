"""Business logic for listing and reading an owner's movements."""

import logging
import math
import re
from typing import Any

from beanie import PydanticObjectId

from core.constants import MAX_PAGE_SIZE
from core.exceptions import ResourceNotFoundError, ValidationError
from core.identity import parse_object_id
from date_utils import ensure_utc
from db.aggregation import aggregate_to_list, round_or_zero
from db.models import Movement
from movements.models import MovementListFilters
from movements.serializers import serialize_movement, serialize_navigation

logger = logging.getLogger(__name__)

SORT_FIELDS = {"date", "claimed_distance_km", "avg_speed_kmh", "duration_minutes"}


def build_list_query(owner_id: PydanticObjectId, filters: MovementListFilters) -> dict[str, Any]:
    """Translate list filters into a MongoDB query over non-deleted records."""
    query: dict[str, Any] = {"owner_id": owner_id, "deleted": False}

    if filters.start_date or filters.end_date:
        date_query: dict[str, Any] = {}
        if filters.start_date:
            date_query["$gte"] = ensure_utc(filters.start_date)
        if filters.end_date:
            date_query["$lte"] = ensure_utc(filters.end_date)
        query["date"] = date_query

    if filters.region and filters.region.strip():
        query["region_label"] = {"$regex": re.escape(filters.region.strip()), "$options": "i"}

    if filters.min_distance is not None or filters.max_distance is not None:
        distance_query: dict[str, Any] = {}
        if filters.min_distance is not None:
            distance_query["$gte"] = filters.min_distance
        if filters.max_distance is not None:
            distance_query["$lte"] = filters.max_distance
        query["claimed_distance_km"] = distance_query

    return query


class MovementQueryService:
    """Service class for movement read operations."""

    @staticmethod
    async def owner_statistics(owner_id: PydanticObjectId) -> dict[str, Any]:
        """Lifetime totals over the owner's non-deleted movements."""
        pipeline = [
            {"$match": {"owner_id": owner_id, "deleted": False}},
            {
                "$group": {
                    "_id": None,
                    "total_distance_km": {"$sum": "$claimed_distance_km"},
                    "total_duration_minutes": {"$sum": "$duration_minutes"},
                    "avg_speed_kmh": {"$avg": "$avg_speed_kmh"},
                    "max_speed_kmh": {"$max": "$max_speed_kmh"},
                    "total_movements": {"$sum": 1},
                },
            },
        ]
        results = await aggregate_to_list(Movement, pipeline)
        row = results[0] if results else {}
        total = int(row.get("total_movements") or 0)
        total_distance = round_or_zero(row.get("total_distance_km"))
        return {
            "total_distance_km": total_distance,
            "total_duration_minutes": round_or_zero(row.get("total_duration_minutes")),
            "avg_speed_kmh": round_or_zero(row.get("avg_speed_kmh")),
            "max_speed_kmh": round_or_zero(row.get("max_speed_kmh")),
            "total_movements": total,
            "avg_distance_per_movement_km": (
                round(total_distance / total, 2) if total else 0.0
            ),
        }

    @staticmethod
    async def list_movements(
        owner_id: PydanticObjectId,
        filters: MovementListFilters,
    ) -> dict[str, Any]:
        """
        Page through an owner's movements.

        Args:
            owner_id: Authenticated owner
            filters: Paging, range and sort options

        Returns:
            dict with movements, pagination, statistics and the applied filters
        """
        page = max(1, filters.page)
        limit = min(MAX_PAGE_SIZE, max(1, filters.limit))
        sort_field = filters.sort_by if filters.sort_by in SORT_FIELDS else "date"
        sort_key = sort_field if filters.sort_order == "asc" else f"-{sort_field}"

        query = build_list_query(owner_id, filters)
        total = await Movement.find(query).count()
        movements = (
            await Movement.find(query)
            .sort(sort_key)
            .skip((page - 1) * limit)
            .limit(limit)
            .to_list()
        )
        statistics = await MovementQueryService.owner_statistics(owner_id)

        total_pages = math.ceil(total / limit) if total else 0
        return {
            "movements": [serialize_movement(m) for m in movements],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
            "statistics": statistics,
            "filters": {
                **filters.model_dump(mode="json", exclude={"page", "limit"}),
                "sort_by": sort_field,
            },
        }

    @staticmethod
    async def get_owned_movement(
        owner_id: PydanticObjectId,
        movement_id: str,
    ) -> Movement:
        """Load a non-deleted movement belonging to ``owner_id``.

        Raises:
            ValidationError: If the id is malformed
            ResourceNotFoundError: If missing, deleted or owned by someone else
        """
        object_id = parse_object_id(movement_id)
        if object_id is None:
            msg = "Invalid movement id"
            raise ValidationError(msg, {"movement_id": "Invalid movement id"})

        movement = await Movement.find_one(
            {"_id": object_id, "owner_id": owner_id, "deleted": False},
        )
        if movement is None:
            msg = "Movement not found"
            raise ResourceNotFoundError(msg, {"movement_id": movement_id})
        return movement

    @staticmethod
    async def get_movement(owner_id: PydanticObjectId, movement_id: str) -> dict[str, Any]:
        """Return one movement plus its chronological neighbours."""
        movement = await MovementQueryService.get_owned_movement(owner_id, movement_id)

        base = {"owner_id": owner_id, "deleted": False}
        previous = (
            await Movement.find({**base, "date": {"$lt": movement.date}})
            .sort("-date")
            .limit(1)
            .to_list()
        )
        following = (
            await Movement.find({**base, "date": {"$gt": movement.date}})
            .sort("+date")
            .limit(1)
            .to_list()
        )

        return {
            "movement": serialize_movement(movement),
            "navigation": {
                "previous": serialize_navigation(previous[0] if previous else None),
                "next": serialize_navigation(following[0] if following else None),
            },
        }
