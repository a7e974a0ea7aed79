"""Derived metrics attached to accepted movements.

Values are rounded first and every derived field is computed from the
rounded values, so running the enrichment again on a stored record gives
the same numbers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from core.constants import KMH_TO_MS
from movements.coherence import check_coherence

if TYPE_CHECKING:
    from db.models import Movement


@dataclass(frozen=True)
class DerivedMetrics:
    claimed_distance_km: float
    avg_speed_kmh: float
    max_speed_kmh: float
    duration_minutes: float
    geodesic_distance_km: float
    distance_discrepancy_km: float
    distance_discrepancy_flagged: bool
    efficiency_km_per_hour: float

    def as_fields(self) -> dict[str, Any]:
        return asdict(self)


def efficiency(distance_km: float, duration_minutes: float, avg_speed_kmh: float) -> float:
    """Kilometres per hour of recorded duration; 0 without positive speed."""
    if avg_speed_kmh <= 0 or duration_minutes <= 0:
        return 0.0
    return round(distance_km / (duration_minutes / 60), 2)


def derive_metrics(
    *,
    start: tuple[float, float],
    end: tuple[float, float],
    claimed_distance_km: float,
    avg_speed_kmh: float,
    max_speed_kmh: float,
    duration_minutes: float,
    tolerance_km: float,
    owner_id: object | None = None,
) -> DerivedMetrics:
    """Round the submitted figures and compute the derived ones. Never rejects."""
    distance = round(claimed_distance_km, 2)
    avg_speed = round(avg_speed_kmh, 1)
    max_speed = round(max_speed_kmh, 1)
    coherence = check_coherence(
        start,
        end,
        distance,
        tolerance_km,
        owner_id=owner_id,
    )
    return DerivedMetrics(
        claimed_distance_km=distance,
        avg_speed_kmh=avg_speed,
        max_speed_kmh=max_speed,
        duration_minutes=duration_minutes,
        geodesic_distance_km=coherence.geodesic_distance_km,
        distance_discrepancy_km=coherence.discrepancy_km,
        distance_discrepancy_flagged=coherence.flagged,
        efficiency_km_per_hour=efficiency(distance, duration_minutes, avg_speed),
    )


def derive_metrics_for(movement: Movement, tolerance_km: float) -> DerivedMetrics:
    """Recompute the derived metrics of a stored movement."""
    return derive_metrics(
        start=(movement.start.latitude, movement.start.longitude),
        end=(movement.end.latitude, movement.end.longitude),
        claimed_distance_km=movement.claimed_distance_km,
        avg_speed_kmh=movement.avg_speed_kmh,
        max_speed_kmh=movement.max_speed_kmh,
        duration_minutes=movement.duration_minutes,
        tolerance_km=tolerance_km,
    )


def presentation_summary(movement: Movement) -> dict[str, Any]:
    """Display figures attached to serialized movements."""
    return {
        "distance_km": movement.claimed_distance_km,
        "duration_minutes": movement.duration_minutes,
        "duration_hours": round(movement.duration_minutes / 60, 2),
        "avg_speed_kmh": movement.avg_speed_kmh,
        "avg_speed_ms": round(movement.avg_speed_kmh * KMH_TO_MS, 2),
        "max_speed_kmh": movement.max_speed_kmh,
        "efficiency": efficiency(
            movement.claimed_distance_km,
            movement.duration_minutes,
            movement.avg_speed_kmh,
        ),
    }
