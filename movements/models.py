"""Pydantic models for movement API and service operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from core.constants import DEFAULT_PAGE_SIZE
from db.models import Movement


class MovementSubmission(BaseModel):
    """Raw trip report as sent by the mobile app.

    Fields are deliberately permissive; range and coherence rules live in
    ``movements.validation.FieldValidator`` so that every violation is
    reported at once.
    """

    start: dict[str, Any] | None = None
    end: dict[str, Any] | None = None
    claimed_distance_km: float | None = None
    avg_speed_kmh: float | None = None
    max_speed_kmh: float | None = None
    duration_minutes: float | None = None
    date: datetime | str | None = None
    region_label: str | None = None
    waypoints: list[Any] = Field(default_factory=list)
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=128)
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")


SortField = Literal["date", "claimed_distance_km", "avg_speed_kmh", "duration_minutes"]
StatsPeriod = Literal["1d", "7d", "30d", "90d"]
StatsGrouping = Literal["hour", "day", "week", "month"]


class MovementListFilters(BaseModel):
    """Query filters for listing an owner's movements."""

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    start_date: datetime | None = None
    end_date: datetime | None = None
    region: str | None = None
    min_distance: float | None = None
    max_distance: float | None = None
    sort_by: SortField = "date"
    sort_order: Literal["asc", "desc"] = "desc"


@dataclass(frozen=True)
class QuotaStatus:
    """Daily submission quota for one owner and one local calendar day."""

    count: int
    limit: int
    day: str

    @property
    def allowed(self) -> bool:
        return self.count < self.limit

    @property
    def remaining(self) -> int:
        return max(self.limit - self.count, 0)

    def as_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "limit": self.limit,
            "allowed": self.allowed,
            "remaining": self.remaining,
            "day": self.day,
        }


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of a successful submission."""

    movement: Movement
    today_count: int
    remaining: int
    duplicate: bool = False
