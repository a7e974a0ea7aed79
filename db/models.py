"""Beanie ODM document models for MongoDB collections.

This module defines all document models using Beanie ODM, which provides:
- Automatic Pydantic validation
- Built-in async CRUD operations
- Proper ObjectId/datetime serialization
- Index definitions at the model level

Usage:
    from db.models import Movement, User

    # Find the movements of a user
    movements = await Movement.find(Movement.owner_id == user.id).to_list()

    # Insert a new document
    user = User(full_name="Ana Gomez", email="ana@example.com", ...)
    await user.insert()
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field, field_validator, model_validator
from pymongo import ASCENDING, DESCENDING, IndexModel

from date_utils import get_current_utc_time, parse_timestamp

UserRole = Literal["admin", "supervisor", "worker", "guest"]
TransportMode = Literal["car", "motorcycle", "bicycle", "walking", "public_transport", "other"]


def _parse_optional_datetime(v: Any) -> datetime | None:
    if v is None:
        return None
    return parse_timestamp(v)


class LocationPoint(BaseModel):
    """Start or end point of a movement."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    timestamp: datetime | None = None
    address: str | None = Field(default=None, max_length=200)

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp_field(cls, v: Any) -> datetime | None:
        return _parse_optional_datetime(v)


class Waypoint(BaseModel):
    """Intermediate GPS fix along a movement."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    timestamp: datetime | None = None
    speed: float | None = Field(default=None, ge=0)
    accuracy: float | None = Field(default=None, ge=0)
    altitude: float | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp_field(cls, v: Any) -> datetime | None:
        return _parse_optional_datetime(v)


class Movement(Document):
    """Accepted, enriched movement record.

    Created only by ``movements.pipeline.MovementPipeline``. The only
    mutation afterwards is the soft-delete flag set.
    """

    owner_id: Indexed(PydanticObjectId)
    start: LocationPoint
    end: LocationPoint
    claimed_distance_km: float = Field(ge=0)
    avg_speed_kmh: float = Field(ge=0)
    max_speed_kmh: float = Field(ge=0)
    duration_minutes: float = Field(gt=0)
    date: datetime
    region_label: str
    waypoints: list[Waypoint] = Field(default_factory=list)
    dropped_waypoint_count: int = 0

    # Derived metrics
    geodesic_distance_km: float = 0.0
    distance_discrepancy_km: float = 0.0
    distance_discrepancy_flagged: bool = False
    efficiency_km_per_hour: float = 0.0

    idempotency_key: str | None = None
    # "<owner_id>:<idempotency_key>"; absent from the stored document when no key was sent
    idempotency_scope: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=get_current_utc_time)

    # Soft delete
    deleted: bool = False
    deleted_at: datetime | None = None
    deleted_by: PydanticObjectId | None = None
    deleted_reason: str | None = None

    @field_validator("date", "created_at", "deleted_at", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        """Parse datetime fields using the centralized date_utils."""
        return _parse_optional_datetime(v)

    @model_validator(mode="after")
    def check_speed_order(self) -> Movement:
        if self.max_speed_kmh < self.avg_speed_kmh:
            msg = "max_speed_kmh must be greater than or equal to avg_speed_kmh"
            raise ValueError(msg)
        return self

    class Settings:
        name = "movements"
        indexes = [
            IndexModel(
                [("owner_id", ASCENDING), ("date", DESCENDING)],
                name="movements_owner_date_idx",
            ),
            IndexModel(
                [("region_label", ASCENDING), ("date", DESCENDING)],
                name="movements_region_date_idx",
            ),
            IndexModel(
                [("deleted", ASCENDING), ("date", ASCENDING)],
                name="movements_deleted_date_idx",
            ),
            IndexModel(
                [("idempotency_scope", ASCENDING)],
                name="movements_idempotency_scope_idx",
                unique=True,
                sparse=True,
            ),
        ]
        keep_nulls = False


class User(Document):
    """Application user profile (credentials live with the auth gateway)."""

    full_name: str = Field(min_length=2, max_length=100)
    email: Indexed(str, unique=True)
    region: str | None = None
    transport: TransportMode | None = None
    role: UserRole = "worker"
    active: bool = True
    created_at: datetime = Field(default_factory=get_current_utc_time)
    last_login_at: datetime | None = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("created_at", "last_login_at", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _parse_optional_datetime(v)

    class Settings:
        name = "users"
        indexes = [
            IndexModel([("active", ASCENDING)], name="users_active_idx"),
            IndexModel([("role", ASCENDING)], name="users_role_idx"),
        ]


class DailyMovementCounter(Document):
    """Accepted-movement counter for one owner and one local calendar day."""

    owner_id: PydanticObjectId
    day: str
    used: int = 0
    updated_at: datetime | None = None

    @field_validator("updated_at", mode="before")
    @classmethod
    def parse_datetime_fields(cls, v: Any) -> datetime | None:
        return _parse_optional_datetime(v)

    class Settings:
        name = "daily_movement_counters"
        indexes = [
            IndexModel(
                [("owner_id", ASCENDING), ("day", ASCENDING)],
                name="daily_counters_owner_day_idx",
                unique=True,
            ),
            IndexModel([("day", ASCENDING)], name="daily_counters_day_idx"),
        ]


# List of all document models for Beanie initialization
ALL_DOCUMENT_MODELS = [
    Movement,
    User,
    DailyMovementCounter,
]
