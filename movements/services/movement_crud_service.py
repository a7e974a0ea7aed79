"""Business logic for movement removal."""

import logging
from typing import Any

from beanie import PydanticObjectId

from config import MovementPolicy, get_movement_policy
from date_utils import get_current_utc_time
from movements.quota import QuotaEnforcer
from movements.services.movement_query_service import MovementQueryService

logger = logging.getLogger(__name__)


class MovementCrudService:
    """Service class for owner-initiated movement changes."""

    def __init__(self, policy: MovementPolicy | None = None) -> None:
        self.policy = policy or get_movement_policy()
        self.quota = QuotaEnforcer(self.policy)

    async def soft_delete(
        self,
        owner_id: PydanticObjectId,
        movement_id: str,
        reason: str | None = None,
    ) -> dict[str, Any]:
        """Flag a movement as deleted and give its quota slot back.

        The record stays in the collection; listings and quota counts skip it.
        """
        movement = await MovementQueryService.get_owned_movement(owner_id, movement_id)

        movement.deleted = True
        movement.deleted_at = get_current_utc_time()
        movement.deleted_by = owner_id
        movement.deleted_reason = reason or "user_request"
        await movement.save()

        await self.quota.release(owner_id, movement.date)

        logger.info("Movement %s soft-deleted by owner %s", movement.id, owner_id)
        return {
            "status": "success",
            "message": "Movement deleted successfully",
            "movement_id": str(movement.id),
            "deleted_at": movement.deleted_at.isoformat(),
        }
