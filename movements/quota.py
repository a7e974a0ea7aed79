"""Per-owner daily movement quota.

The ceiling applies to movements dated today in the service time zone.
Reservations go through a ``DailyMovementCounter`` document per
``(owner_id, day)``: a single conditional ``$inc`` guarded by
``used < limit`` admits or refuses a submission, so concurrent requests of
the same owner cannot overrun the ceiling. The counter of a day is seeded
from the stored movements the first time it is touched. Backdated
submissions are admitted only while today still has room and take no slot.
"""

from __future__ import annotations

import logging
from datetime import datetime

from beanie import PydanticObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from config import MovementPolicy
from core.exceptions import PersistenceError, QuotaExceededError
from date_utils import day_bounds, get_current_utc_time, local_day_key
from db.models import DailyMovementCounter
from movements.models import QuotaStatus
from movements.store import MovementStore

logger = logging.getLogger(__name__)

_SEED_ATTEMPTS = 2


class QuotaEnforcer:
    """Counts and reserves daily submission slots."""

    def __init__(self, policy: MovementPolicy, store: MovementStore | None = None) -> None:
        self.policy = policy
        self.store = store or MovementStore()

    @property
    def limit(self) -> int:
        return self.policy.max_movements_per_day

    def day_key(self, as_of: datetime) -> str:
        return local_day_key(as_of, self.policy.timezone)

    async def check_quota(
        self,
        owner_id: PydanticObjectId,
        as_of: datetime | None = None,
    ) -> QuotaStatus:
        """Count the owner's non-deleted movements on the calendar day of ``as_of``."""
        as_of = as_of or get_current_utc_time()
        start, end = day_bounds(as_of, self.policy.timezone)
        count = await self.store.count_for_day(owner_id, start, end)
        return QuotaStatus(count=count, limit=self.limit, day=self.day_key(as_of))

    async def admit(
        self,
        owner_id: PydanticObjectId,
        movement_date: datetime,
        now: datetime,
    ) -> QuotaStatus:
        """
        Gate a submission on today's count.

        A movement dated today takes a slot through ``reserve``; a backdated
        one only requires today to be below the limit. Either way the
        returned status describes today.
        """
        if self.takes_slot(movement_date, now):
            return await self.reserve(owner_id, now)
        status = await self.check_quota(owner_id, now)
        if not status.allowed:
            raise QuotaExceededError(status.count, status.limit, status.day)
        return status

    def takes_slot(self, movement_date: datetime, now: datetime) -> bool:
        return self.day_key(movement_date) == self.day_key(now)

    async def reserve(self, owner_id: PydanticObjectId, as_of: datetime) -> QuotaStatus:
        """
        Take one slot on the calendar day of ``as_of``.

        Returns the status including the new slot; raises
        ``QuotaExceededError`` when the day is full.
        """
        day = self.day_key(as_of)
        collection = DailyMovementCounter.get_pymongo_collection()
        try:
            for _ in range(_SEED_ATTEMPTS):
                updated = await collection.find_one_and_update(
                    {"owner_id": owner_id, "day": day, "used": {"$lt": self.limit}},
                    {
                        "$inc": {"used": 1},
                        "$set": {"updated_at": get_current_utc_time()},
                    },
                    return_document=ReturnDocument.AFTER,
                )
                if updated is not None:
                    return QuotaStatus(count=updated["used"], limit=self.limit, day=day)

                existing = await collection.find_one({"owner_id": owner_id, "day": day})
                if existing is not None:
                    raise QuotaExceededError(existing["used"], self.limit, day)

                start, end = day_bounds(as_of, self.policy.timezone)
                seeded = await self.store.count_for_day(owner_id, start, end)
                if seeded >= self.limit:
                    raise QuotaExceededError(seeded, self.limit, day)
                try:
                    await collection.insert_one(
                        {
                            "owner_id": owner_id,
                            "day": day,
                            "used": seeded + 1,
                            "updated_at": get_current_utc_time(),
                        },
                    )
                except DuplicateKeyError:
                    logger.debug("Counter %s/%s seeded concurrently; retrying", owner_id, day)
                    continue
                return QuotaStatus(count=seeded + 1, limit=self.limit, day=day)
        except PyMongoError as e:
            logger.exception("Quota reservation failed for owner %s", owner_id)
            msg = "Could not reserve daily quota"
            raise PersistenceError(msg) from e

        msg = "Could not reserve daily quota"
        raise PersistenceError(msg)

    async def release(self, owner_id: PydanticObjectId, as_of: datetime) -> None:
        """Give back one slot (failed insert or soft delete)."""
        day = self.day_key(as_of)
        collection = DailyMovementCounter.get_pymongo_collection()
        try:
            await collection.update_one(
                {"owner_id": owner_id, "day": day, "used": {"$gt": 0}},
                {"$inc": {"used": -1}, "$set": {"updated_at": get_current_utc_time()}},
            )
        except PyMongoError as e:
            msg = "Could not release daily quota"
            raise PersistenceError(msg) from e
