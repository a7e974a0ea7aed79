"""Request models for user profile endpoints."""

from pydantic import BaseModel, Field

from db.models import TransportMode, UserRole


class UserCreate(BaseModel):
    full_name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=254)
    region: str | None = Field(default=None, max_length=50)
    transport: TransportMode | None = None
    role: UserRole = "worker"
