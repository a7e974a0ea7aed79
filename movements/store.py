"""Persistence collaborators of the movement pipeline.

``MovementStore`` and ``UserDirectory`` are thin Beanie-backed adapters.
The pipeline receives them at construction, so tests can substitute fakes.
Driver failures surface as ``PersistenceError``.
"""

from __future__ import annotations

import logging
from datetime import datetime

from beanie import PydanticObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from core.exceptions import DuplicateResourceError, PersistenceError
from db.models import Movement, User

logger = logging.getLogger(__name__)


def idempotency_scope(owner_id: PydanticObjectId, key: str) -> str:
    """Value of the unique index that makes a client key exactly-once per owner."""
    return f"{owner_id}:{key}"


class MovementStore:
    """Reads and writes accepted movements."""

    async def count_for_day(
        self,
        owner_id: PydanticObjectId,
        start: datetime,
        end: datetime,
    ) -> int:
        """Count non-deleted movements of ``owner_id`` dated within [start, end]."""
        try:
            return await Movement.find(
                {
                    "owner_id": owner_id,
                    "deleted": False,
                    "date": {"$gte": start, "$lte": end},
                },
            ).count()
        except PyMongoError as e:
            logger.exception("Counting movements failed for owner %s", owner_id)
            msg = "Could not count movements"
            raise PersistenceError(msg) from e

    async def insert(self, movement: Movement) -> Movement:
        """Insert a new movement.

        Raises:
            DuplicateResourceError: If a movement with the same idempotency key
                was stored concurrently
            PersistenceError: On any other driver failure
        """
        try:
            return await movement.insert()
        except DuplicateKeyError as e:
            logger.info(
                "Movement with idempotency key %s already stored for owner %s",
                movement.idempotency_key,
                movement.owner_id,
            )
            msg = "Movement already registered"
            raise DuplicateResourceError(msg, {"idempotency_key": movement.idempotency_key}) from e
        except PyMongoError as e:
            logger.exception("Inserting movement failed for owner %s", movement.owner_id)
            msg = "Could not store movement"
            raise PersistenceError(msg) from e

    async def find_by_idempotency_key(
        self,
        owner_id: PydanticObjectId,
        key: str,
    ) -> Movement | None:
        """The movement first stored under ``key``, soft-deleted or not."""
        try:
            return await Movement.find_one(
                {"idempotency_scope": idempotency_scope(owner_id, key)},
            )
        except PyMongoError as e:
            msg = "Could not look up previous submission"
            raise PersistenceError(msg) from e


class UserDirectory:
    """Looks up submitting accounts."""

    async def find_by_id(self, owner_id: PydanticObjectId) -> User | None:
        try:
            return await User.get(owner_id)
        except PyMongoError as e:
            msg = "Could not load user"
            raise PersistenceError(msg) from e
