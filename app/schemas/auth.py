from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional


class UserBase(BaseModel):
    """Base user schema."""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    company: Optional[str] = Field(None, max_length=255)


class UserCreate(UserBase):
    """Schema for creating a user."""

    password: str = Field(..., min_length=8)


class UserResponse(UserBase):
    """Schema for user response."""

    id: str  # Frontend expects string ID
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_db_user(cls, user) -> "UserResponse":
        """Create UserResponse from database User model."""
        return cls(
            id=str(user.id),
            email=user.email,
            name=user.name,
            company=user.company,
            is_active=user.is_active,
            created_at=user.created_at,
        )


class AuthMeResponse(BaseModel):
    """Response wrapper for /auth/me."""

    user: UserResponse


class Token(BaseModel):
    """JWT token response - includes 'token' for frontend compatibility."""

    access_token: str
    token: str  # Alias for access_token
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Data encoded in JWT token."""

    user_id: Optional[int] = None
    email: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str
