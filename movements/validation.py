"""Field-level validation of movement submissions.

Every rule is evaluated independently and all violations are reported
together as ``{field: message}``. Waypoints never cause a rejection: points
failing the coordinate rule are dropped, keeping the relative order of the
accepted ones.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from config import BoundingBox, MovementPolicy
from core.constants import (
    MAX_AVG_SPEED_KMH,
    MAX_CLAIMED_DISTANCE_KM,
    MAX_DURATION_MINUTES,
    MAX_MAX_SPEED_KMH,
    REGION_LABEL_MAX_LENGTH,
    REGION_LABEL_MIN_LENGTH,
)
from date_utils import get_current_utc_time, parse_timestamp
from db.models import Waypoint

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from movements.models import MovementSubmission

logger = logging.getLogger(__name__)

MAX_ADDRESS_LENGTH = 200


def is_number(value: Any) -> bool:
    """True for finite ints and floats; bools are rejected."""
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def is_valid_coordinate(point: Any, bounds: BoundingBox | None = None) -> bool:
    """Check a ``{latitude, longitude}`` mapping against the global range and
    the optional strict bounding box.
    """
    if not isinstance(point, dict):
        return False
    latitude = point.get("latitude")
    longitude = point.get("longitude")
    if not is_number(latitude) or not is_number(longitude):
        return False
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        return False
    if bounds is not None and not bounds.contains(latitude, longitude):
        return False
    return True


def _in_range(value: Any, upper: float) -> bool:
    return is_number(value) and 0 < value <= upper


def _coerce_waypoint(point: Any, bounds: BoundingBox | None) -> Waypoint | None:
    if not is_valid_coordinate(point, bounds):
        return None
    try:
        return Waypoint.model_validate(point)
    except PydanticValidationError:
        return None


def iter_valid_waypoints(
    points: Iterable[Any],
    bounds: BoundingBox | None = None,
    dropped: list[Any] | None = None,
) -> Iterator[Waypoint]:
    """Lazily yield the waypoints that pass the coordinate rule, in order.

    Rejected points are appended to ``dropped`` when a list is given.
    """
    for point in points:
        waypoint = _coerce_waypoint(point, bounds)
        if waypoint is not None:
            yield waypoint
        elif dropped is not None:
            dropped.append(point)


@dataclass
class WaypointFilterResult:
    accepted: list[Waypoint] = field(default_factory=list)
    dropped: list[Any] = field(default_factory=list)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)


def filter_waypoints(
    points: Iterable[Any],
    bounds: BoundingBox | None = None,
) -> WaypointFilterResult:
    """Split waypoints into accepted and dropped, preserving order."""
    result = WaypointFilterResult()
    result.accepted.extend(iter_valid_waypoints(points, bounds, result.dropped))
    if result.dropped:
        logger.info(
            "Dropped %d of %d waypoints outside the accepted coordinate range",
            result.dropped_count,
            result.dropped_count + len(result.accepted),
        )
    return result


class FieldValidator:
    """Range and type checks for a single submission."""

    def __init__(self, policy: MovementPolicy) -> None:
        self.policy = policy

    def _location_error(self, location: Any, label: str) -> str | None:
        if not is_valid_coordinate(location, self.policy.strict_bounds):
            return f"{label} location is invalid or out of range"
        address = location.get("address")
        if address is not None and (
            not isinstance(address, str) or len(address.strip()) > MAX_ADDRESS_LENGTH
        ):
            return f"{label} address must be text of at most {MAX_ADDRESS_LENGTH} characters"
        return None

    def _date_error(self, value: Any, now: datetime) -> str | None:
        parsed = parse_timestamp(value) if value is not None else None
        if parsed is None:
            return "Invalid date"
        if parsed > now:
            return "Date cannot be in the future"
        max_age = timedelta(days=self.policy.max_submission_age_days)
        if parsed < now - max_age:
            return (
                f"Date cannot be more than {self.policy.max_submission_age_days} "
                "days in the past"
            )
        return None

    def validate(
        self,
        submission: MovementSubmission,
        *,
        now: datetime | None = None,
    ) -> dict[str, str]:
        """Return ``{}`` when valid, otherwise every violated field."""
        now = now or get_current_utc_time()
        errors: dict[str, str] = {}

        for name, label in (("start", "Start"), ("end", "End")):
            message = self._location_error(getattr(submission, name), label)
            if message:
                errors[name] = message

        if not _in_range(submission.claimed_distance_km, MAX_CLAIMED_DISTANCE_KM):
            errors["claimed_distance_km"] = (
                f"Distance must be greater than 0 and at most {MAX_CLAIMED_DISTANCE_KM:g} km"
            )

        avg = submission.avg_speed_kmh
        max_speed = submission.max_speed_kmh
        if not _in_range(avg, MAX_AVG_SPEED_KMH):
            errors["avg_speed_kmh"] = (
                f"Average speed must be greater than 0 and at most {MAX_AVG_SPEED_KMH:g} km/h"
            )
        if not _in_range(max_speed, MAX_MAX_SPEED_KMH):
            errors["max_speed_kmh"] = (
                f"Max speed must be greater than 0 and at most {MAX_MAX_SPEED_KMH:g} km/h"
            )
        if is_number(avg) and is_number(max_speed) and max_speed < avg:
            errors["max_speed_kmh"] = "Max speed cannot be lower than average speed"

        if not _in_range(submission.duration_minutes, MAX_DURATION_MINUTES):
            errors["duration_minutes"] = (
                "Duration must be greater than 0 and at most "
                f"{MAX_DURATION_MINUTES:g} minutes"
            )

        date_message = self._date_error(submission.date, now)
        if date_message:
            errors["date"] = date_message

        region = submission.region_label
        if not isinstance(region, str) or not (
            REGION_LABEL_MIN_LENGTH <= len(region.strip()) <= REGION_LABEL_MAX_LENGTH
        ):
            errors["region_label"] = (
                f"Region must have between {REGION_LABEL_MIN_LENGTH} and "
                f"{REGION_LABEL_MAX_LENGTH} characters"
            )

        return errors
