"""API routes for user profiles."""

import logging

from fastapi import APIRouter, status

from core.api import api_route
from db.models import UserRole
from users.models import UserCreate
from users.service import UserService, serialize_user

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/users", status_code=status.HTTP_201_CREATED, tags=["Users API"])
@api_route(logger)
async def create_user(payload: UserCreate):
    """Create a user profile."""
    user = await UserService.create_user(payload)
    return {"status": "success", "user": serialize_user(user)}


@router.get("/api/users", tags=["Users API"])
@api_route(logger)
async def list_users(role: UserRole | None = None):
    """List active users, optionally filtered by role."""
    users = await UserService.list_active_users(role)
    return {"users": [serialize_user(u) for u in users], "total": len(users)}


@router.get("/api/users/{user_id}", tags=["Users API"])
@api_route(logger)
async def get_user(user_id: str):
    user = await UserService.get_user(user_id)
    return serialize_user(user)


@router.patch("/api/users/{user_id}/deactivate", tags=["Users API"])
@api_route(logger)
async def deactivate_user(user_id: str):
    """Deactivate a user profile."""
    user = await UserService.deactivate_user(user_id)
    return {"status": "success", "user": serialize_user(user)}
