"""Request/response models for authentication endpoints."""

from datetime import datetime
from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Request model for user registration."""
    email: str = Field(..., description="Email address used to log in")
    password: str = Field(..., description="Plain-text password (at least 6 characters)")


class LoginRequest(BaseModel):
    """Request model for login."""
    email: str
    password: str


class UserResponse(BaseModel):
    """Public view of a user."""
    id: str
    email: str
    created_at: datetime


class TokenResponse(BaseModel):
    """Response model for a successful login."""
    token: str
