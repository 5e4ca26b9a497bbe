"""User data model for the task manager."""

from datetime import datetime
from pydantic import BaseModel, Field


class User(BaseModel):
    """User model.

    `password_hash` is a bcrypt hash and must never be returned by the API.
    """

    id: str = Field(..., description="Unique user identifier (UUID v4)")
    email: str = Field(..., description="User email address")
    password_hash: str = Field(..., description="bcrypt password hash")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")
