"""Global constants for the core package.

This module contains shared constants used across the application core.
"""

from typing import Final

# Geodesy
EARTH_RADIUS_KM: Final[float] = 6371.0

# Submission ranges (exclusive lower bound, inclusive upper bound)
MAX_CLAIMED_DISTANCE_KM: Final[float] = 1000.0
MAX_AVG_SPEED_KMH: Final[float] = 200.0
MAX_MAX_SPEED_KMH: Final[float] = 300.0
MAX_DURATION_MINUTES: Final[float] = 1440.0
REGION_LABEL_MIN_LENGTH: Final[int] = 2
REGION_LABEL_MAX_LENGTH: Final[int] = 50

# Speed conversion
KMH_TO_MS: Final[float] = 1 / 3.6

# Pagination
DEFAULT_PAGE_SIZE: Final[int] = 20
MAX_PAGE_SIZE: Final[int] = 100
