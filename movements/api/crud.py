"""API routes for movement registration and removal."""

import logging
from typing import Any

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, Request, status

from core.api import api_route
from core.identity import get_current_user_id
from movements.dependencies import get_crud_service, get_movement_pipeline
from movements.models import MovementSubmission
from movements.pipeline import MovementPipeline
from movements.serializers import serialize_movement
from movements.services import MovementCrudService

logger = logging.getLogger(__name__)
router = APIRouter()


def _request_info(request: Request) -> dict[str, Any]:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip": request.client.host if request.client else None,
    }


@router.post(
    "/api/movements",
    status_code=status.HTTP_201_CREATED,
    tags=["Movements API"],
)
@api_route(logger)
async def register_movement(
    submission: MovementSubmission,
    request: Request,
    owner_id: PydanticObjectId = Depends(get_current_user_id),
    pipeline: MovementPipeline = Depends(get_movement_pipeline),
):
    """Validate, enrich and store a movement reported by the mobile app."""
    result = await pipeline.register(
        owner_id,
        submission,
        request_info=_request_info(request),
    )
    return {
        "status": "success",
        "movement": serialize_movement(result.movement),
        "today_count": result.today_count,
        "remaining": result.remaining,
        "duplicate": result.duplicate,
    }


@router.delete("/api/movements/{movement_id}", tags=["Movements API"])
@api_route(logger)
async def delete_movement(
    movement_id: str,
    owner_id: PydanticObjectId = Depends(get_current_user_id),
    service: MovementCrudService = Depends(get_crud_service),
):
    """Soft-delete one of the caller's movements."""
    return await service.soft_delete(owner_id, movement_id)
