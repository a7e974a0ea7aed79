"""Great-circle distance between coordinate pairs."""

from __future__ import annotations

import math

from core.constants import EARTH_RADIUS_KM


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Haversine distance in kilometres, rounded to 2 decimals.

    Inputs are assumed already range-checked. The ``atan2`` form stays
    accurate for antipodal points and at the poles, where ``asin(sqrt(a))``
    loses precision once ``a`` drifts past 1.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)
