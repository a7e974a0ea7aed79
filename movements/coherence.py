"""Cross-check of claimed distance against the straight-line distance."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from movements.geodesic import distance_km

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoherenceResult:
    geodesic_distance_km: float
    discrepancy_km: float
    flagged: bool


def check_coherence(
    start: tuple[float, float],
    end: tuple[float, float],
    claimed_distance_km: float,
    tolerance_km: float,
    *,
    owner_id: object | None = None,
) -> CoherenceResult:
    """
    Compare ``claimed_distance_km`` with the geodesic start/end distance.

    Straight-line distance under-counts real paths, so a discrepancy above
    ``tolerance_km`` is only logged and flagged on the record.
    """
    geodesic = distance_km(start[0], start[1], end[0], end[1])
    discrepancy = round(abs(claimed_distance_km - geodesic), 2)
    flagged = discrepancy > tolerance_km
    if flagged:
        logger.warning(
            "Distance discrepancy for owner %s: claimed=%.2f km geodesic=%.2f km "
            "difference=%.2f km",
            owner_id,
            claimed_distance_km,
            geodesic,
            discrepancy,
        )
    return CoherenceResult(
        geodesic_distance_km=geodesic,
        discrepancy_km=discrepancy,
        flagged=flagged,
    )
