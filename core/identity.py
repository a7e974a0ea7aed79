"""Caller identity resolution.

Tokens are verified by the authentication gateway in front of this service;
requests arrive with the authenticated account id in ``X-User-Id``.
"""

from __future__ import annotations

from beanie import PydanticObjectId
from bson import ObjectId
from fastapi import Header, HTTPException, status

USER_ID_HEADER = "X-User-Id"


def parse_object_id(value: str | None) -> PydanticObjectId | None:
    """Return the ObjectId for a 24-hex string, or None when malformed."""
    if not value or not ObjectId.is_valid(value):
        return None
    return PydanticObjectId(value)


async def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> PydanticObjectId:
    """FastAPI dependency returning the authenticated account id."""
    user_id = parse_object_id(x_user_id.strip() if x_user_id else None)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "message": "Missing or invalid user identity",
                "code": "AUTHENTICATION_REQUIRED",
            },
        )
    return user_id
