"""Centralized configuration for environment variables and policy constants.

This module is the single source of truth for configuration used across the
application. Import constants from here rather than calling os.getenv directly
in multiple places.

Movement policy values are read once per process through
``get_movement_policy()`` and handed to the validation pipeline as an
immutable ``MovementPolicy``; nothing on the request path reads the
environment directly.
"""

from __future__ import annotations

import functools
import os
from dataclasses import dataclass
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


# --- HTTP ---
CORS_ALLOWED_ORIGINS: Final[str] = os.getenv("CORS_ALLOWED_ORIGINS", "")
APP_VERSION: Final[str] = os.getenv("APP_VERSION", "1.0.0")
ENVIRONMENT: Final[str] = os.getenv("ENVIRONMENT", "development")


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive latitude/longitude box."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return (
            self.min_lat <= latitude <= self.max_lat
            and self.min_lon <= longitude <= self.max_lon
        )


# Approximate Colombian territory
DEFAULT_BOUNDS: Final[BoundingBox] = BoundingBox(
    min_lat=-4.2,
    max_lat=12.5,
    min_lon=-84.8,
    max_lon=-66.9,
)


@dataclass(frozen=True)
class MovementPolicy:
    """Tunable constants of the movement validation pipeline."""

    max_movements_per_day: int = 50
    strict_bounds: BoundingBox | None = None
    distance_tolerance_km: float = 0.5
    max_submission_age_days: int = 7
    timezone: str = "America/Bogota"
    retention_months: int = 24
    hard_delete_after_years: int = 3

    @classmethod
    def from_env(cls) -> MovementPolicy:
        strict = _env_bool("STRICT_BOUNDS_ENABLED") or _env_bool(
            "VALIDATE_COLOMBIA_BOUNDS",
        )
        bounds = None
        if strict:
            bounds = BoundingBox(
                min_lat=_env_float("BOUNDS_MIN_LAT", DEFAULT_BOUNDS.min_lat),
                max_lat=_env_float("BOUNDS_MAX_LAT", DEFAULT_BOUNDS.max_lat),
                min_lon=_env_float("BOUNDS_MIN_LON", DEFAULT_BOUNDS.min_lon),
                max_lon=_env_float("BOUNDS_MAX_LON", DEFAULT_BOUNDS.max_lon),
            )
        limit = _env_int("MAX_MOVEMENTS_PER_DAY", 50)
        return cls(
            max_movements_per_day=limit if limit > 0 else 50,
            strict_bounds=bounds,
            distance_tolerance_km=_env_float("DISTANCE_TOLERANCE_KM", 0.5),
            max_submission_age_days=_env_int("MAX_SUBMISSION_AGE_DAYS", 7),
            timezone=os.getenv("SERVICE_TIMEZONE", "America/Bogota").strip()
            or "America/Bogota",
            retention_months=_env_int("DATA_RETENTION_MONTHS", 24),
            hard_delete_after_years=_env_int("HARD_DELETE_AFTER_YEARS", 3),
        )


@functools.lru_cache(maxsize=1)
def get_movement_policy() -> MovementPolicy:
    """Return the process-wide movement policy, read from the environment once."""
    return MovementPolicy.from_env()


__all__ = [
    "APP_VERSION",
    "CORS_ALLOWED_ORIGINS",
    "DEFAULT_BOUNDS",
    "ENVIRONMENT",
    "BoundingBox",
    "MovementPolicy",
    "get_movement_policy",
]
