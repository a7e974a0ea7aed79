"""Dashboard package."""

from dashboard.api import router

__all__ = ["router"]
