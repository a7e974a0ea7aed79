"""
Centralized date and time utilities for the application.

All timestamps are handled as timezone-aware datetime objects, defaulting to
UTC. Calendar-day arithmetic (quota windows, statistics buckets) happens in
the service time zone configured in ``config.MovementPolicy.timezone``.
"""

import logging
from datetime import UTC, date, datetime, time, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo

from dateutil import parser

logger = logging.getLogger(__name__)


def get_current_utc_time() -> datetime:
    """Return the current time as a timezone-aware datetime object in UTC."""
    return datetime.now(UTC)


def parse_timestamp(ts: str | datetime) -> datetime | None:
    """
    Parse a timestamp string (or datetime object) and ensure it is
    timezone-aware, defaulting to UTC.

    Args:
        ts: The timestamp to parse, either as an ISO 8601 string or a
            datetime object.

    Returns:
        A timezone-aware datetime object, or None if parsing fails.
    """
    if not ts:
        logger.debug("Received empty timestamp; returning None.")
        return None

    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            return ts.replace(tzinfo=UTC)
        return ts

    if not isinstance(ts, str):
        logger.warning("Unsupported timestamp type '%s'", type(ts))
        return None

    try:
        parsed_time = parser.isoparse(ts)
        if parsed_time.tzinfo is None:
            return parsed_time.replace(tzinfo=UTC)
        return parsed_time
    except (ValueError, TypeError, OverflowError) as e:
        logger.warning("Failed to parse timestamp '%s': %s", ts, e)
        return None


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Return the datetime as an explicit UTC-aware value."""

    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def normalize_to_utc_datetime(value: str | datetime | date | None) -> datetime | None:
    """Normalize arbitrary date/datetime inputs to a UTC-aware datetime."""

    if value is None:
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time(), tzinfo=UTC)

    if isinstance(value, str):
        parsed = parse_timestamp(value)
        if parsed:
            return ensure_utc(parsed)
        return None

    logger.warning("Unsupported datetime input type '%s'", type(value))
    return None


@lru_cache(maxsize=16)
def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA zone name, cached."""
    return ZoneInfo(name)


def local_day_key(moment: datetime, tz_name: str) -> str:
    """Return the YYYY-MM-DD calendar day of ``moment`` in ``tz_name``."""
    aware = ensure_utc(moment)
    return aware.astimezone(get_zone(tz_name)).date().isoformat()


def day_bounds(moment: datetime, tz_name: str) -> tuple[datetime, datetime]:
    """
    Return the inclusive UTC bounds of the local calendar day containing
    ``moment``.

    The end bound is the last microsecond of the day, so range queries use
    ``$gte``/``$lte``.
    """
    zone = get_zone(tz_name)
    local_day = ensure_utc(moment).astimezone(zone).date()
    start_local = datetime.combine(local_day, time.min, tzinfo=zone)
    end_local = datetime.combine(local_day, time.max, tzinfo=zone)
    return start_local.astimezone(UTC), end_local.astimezone(UTC)


def days_ago(days: int, *, now: datetime | None = None) -> datetime:
    """Return the UTC moment ``days`` days before ``now``."""
    return (now or get_current_utc_time()) - timedelta(days=days)
