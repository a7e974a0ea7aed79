"""Serialization helpers for movement responses."""

from typing import Any

from db.models import Movement
from movements.metrics import presentation_summary

NAVIGATION_FIELDS = ("id", "date", "claimed_distance_km", "region_label")


def serialize_movement(movement: Movement) -> dict[str, Any]:
    """JSON-safe movement with the presentation summary attached."""
    data = movement.model_dump(mode="json", exclude={"idempotency_scope"})
    data["id"] = str(movement.id) if movement.id is not None else None
    data["summary"] = presentation_summary(movement)
    return data


def serialize_navigation(movement: Movement | None) -> dict[str, Any] | None:
    if movement is None:
        return None
    data = movement.model_dump(mode="json", include=set(NAVIGATION_FIELDS))
    data["id"] = str(movement.id)
    return data
