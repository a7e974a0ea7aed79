"""Business logic for user profiles."""

import logging
from typing import Any

from pymongo.errors import DuplicateKeyError

from core.exceptions import DuplicateResourceError, ResourceNotFoundError, ValidationError
from core.identity import parse_object_id
from db.models import User
from users.models import UserCreate

logger = logging.getLogger(__name__)

PUBLIC_FIELDS = {
    "full_name",
    "email",
    "region",
    "transport",
    "role",
    "active",
    "created_at",
    "last_login_at",
}


def serialize_user(user: User) -> dict[str, Any]:
    data = user.model_dump(mode="json", include=PUBLIC_FIELDS)
    data["id"] = str(user.id)
    return data


class UserService:
    """Service class for user profile operations."""

    @staticmethod
    async def create_user(payload: UserCreate) -> User:
        """Create a profile; the email must not be registered already."""
        email = payload.email.strip().lower()
        if await User.find_one({"email": email}) is not None:
            msg = "A user with this email already exists"
            raise DuplicateResourceError(msg, {"email": email})

        user = User(**payload.model_dump())
        try:
            await user.insert()
        except DuplicateKeyError as e:
            msg = "A user with this email already exists"
            raise DuplicateResourceError(msg, {"email": email}) from e

        logger.info("Created user %s (%s)", user.id, user.role)
        return user

    @staticmethod
    async def list_active_users(role: str | None = None) -> list[User]:
        query: dict[str, Any] = {"active": True}
        if role:
            query["role"] = role
        return await User.find(query).sort("+full_name").to_list()

    @staticmethod
    async def get_user(user_id: str) -> User:
        object_id = parse_object_id(user_id)
        if object_id is None:
            msg = "Invalid user id"
            raise ValidationError(msg, {"user_id": "Invalid user id"})
        user = await User.get(object_id)
        if user is None:
            msg = "User not found"
            raise ResourceNotFoundError(msg, {"user_id": user_id})
        return user

    @staticmethod
    async def deactivate_user(user_id: str) -> User:
        """Mark a user inactive; their movement submissions are refused from then on."""
        user = await UserService.get_user(user_id)
        if user.active:
            user.active = False
            await user.save()
            logger.info("Deactivated user %s", user.id)
        return user
