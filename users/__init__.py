"""User profile package."""

from users.api import router

__all__ = ["router"]
