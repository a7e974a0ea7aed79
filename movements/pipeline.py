"""Movement submission processing pipeline.

received -> field-validated -> coherence-checked -> quota-checked ->
enriched -> persisted. Rejections at field validation (400), account check
(403) or quota (429) are terminal; nothing is retried here.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from beanie import PydanticObjectId

from config import MovementPolicy, get_movement_policy
from core.exceptions import (
    AuthorizationError,
    DuplicateResourceError,
    PersistenceError,
    ValidationError,
)
from date_utils import ensure_utc, get_current_utc_time, parse_timestamp
from db.models import LocationPoint, Movement
from movements.metrics import derive_metrics
from movements.models import MovementSubmission, RegistrationResult
from movements.quota import QuotaEnforcer
from movements.store import MovementStore, UserDirectory, idempotency_scope
from movements.validation import FieldValidator, filter_waypoints

logger = logging.getLogger(__name__)

COORDINATE_DECIMALS = 6


def _location(raw: dict[str, Any], fallback_time: datetime) -> LocationPoint:
    address = raw.get("address")
    return LocationPoint(
        latitude=round(raw["latitude"], COORDINATE_DECIMALS),
        longitude=round(raw["longitude"], COORDINATE_DECIMALS),
        timestamp=ensure_utc(parse_timestamp(raw.get("timestamp"))) or fallback_time,
        address=address.strip() if isinstance(address, str) and address.strip() else None,
    )


class MovementPipeline:
    """Linear pipeline turning a raw submission into a stored movement."""

    def __init__(
        self,
        policy: MovementPolicy | None = None,
        store: MovementStore | None = None,
        users: UserDirectory | None = None,
        quota: QuotaEnforcer | None = None,
    ) -> None:
        self.policy = policy or get_movement_policy()
        self.store = store or MovementStore()
        self.users = users or UserDirectory()
        self.quota = quota or QuotaEnforcer(self.policy, self.store)
        self.validator = FieldValidator(self.policy)

    async def register(
        self,
        owner_id: PydanticObjectId,
        submission: MovementSubmission,
        *,
        request_info: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> RegistrationResult:
        """Validate, enrich and store one submission."""
        now = now or get_current_utc_time()
        logger.info(
            "Registering movement for owner %s (region=%s, distance=%s, duration=%s)",
            owner_id,
            submission.region_label,
            submission.claimed_distance_km,
            submission.duration_minutes,
        )

        errors = self.validator.validate(submission, now=now)
        if errors:
            msg = "Movement data failed validation"
            raise ValidationError(msg, errors)

        movement_date = ensure_utc(parse_timestamp(submission.date))
        start = _location(submission.start, movement_date)
        end = _location(submission.end, movement_date)
        metrics = derive_metrics(
            start=(start.latitude, start.longitude),
            end=(end.latitude, end.longitude),
            claimed_distance_km=submission.claimed_distance_km,
            avg_speed_kmh=submission.avg_speed_kmh,
            max_speed_kmh=submission.max_speed_kmh,
            duration_minutes=submission.duration_minutes,
            tolerance_km=self.policy.distance_tolerance_km,
            owner_id=owner_id,
        )

        user = await self.users.find_by_id(owner_id)
        if user is None or not user.active:
            msg = "User is not authorized to register movements"
            raise AuthorizationError(msg, {"owner_id": str(owner_id)})

        key = submission.idempotency_key
        if key:
            previous = await self.store.find_by_idempotency_key(owner_id, key)
            if previous is not None:
                return await self._replay(owner_id, key, previous, now)

        takes_slot = self.quota.takes_slot(movement_date, now)
        status = await self.quota.admit(owner_id, movement_date, now)

        waypoints = filter_waypoints(submission.waypoints, self.policy.strict_bounds)
        metadata = dict(submission.metadata)
        if request_info:
            metadata["request"] = request_info

        movement = Movement(
            owner_id=owner_id,
            start=start,
            end=end,
            date=movement_date,
            region_label=submission.region_label.strip(),
            waypoints=waypoints.accepted,
            dropped_waypoint_count=waypoints.dropped_count,
            idempotency_key=key,
            idempotency_scope=idempotency_scope(owner_id, key) if key else None,
            metadata=metadata,
            created_at=now,
            **metrics.as_fields(),
        )
        try:
            movement = await self.store.insert(movement)
        except DuplicateResourceError:
            # A concurrent retry with the same key won the insert
            if takes_slot:
                await self.quota.release(owner_id, now)
            previous = await self.store.find_by_idempotency_key(owner_id, key) if key else None
            if previous is None:
                raise
            return await self._replay(owner_id, key, previous, now)
        except PersistenceError:
            if takes_slot:
                await self.quota.release(owner_id, now)
            raise

        logger.info(
            "Movement %s registered for owner %s (%d/%d on %s)",
            movement.id,
            owner_id,
            status.count,
            status.limit,
            status.day,
        )
        return RegistrationResult(
            movement=movement,
            today_count=status.count,
            remaining=status.remaining,
        )

    async def _replay(
        self,
        owner_id: PydanticObjectId,
        key: str,
        previous: Movement,
        now: datetime,
    ) -> RegistrationResult:
        """Answer a retried submission with the record first stored for its key.

        The original is returned even when it has since been soft-deleted, so a
        retry never resurrects a removed movement.
        """
        status = await self.quota.check_quota(owner_id, now)
        logger.info(
            "Replayed submission %s for owner %s; returning movement %s",
            key,
            owner_id,
            previous.id,
        )
        return RegistrationResult(
            movement=previous,
            today_count=status.count,
            remaining=status.remaining,
            duplicate=True,
        )

