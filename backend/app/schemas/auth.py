"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from backend.app.models.enums import UserRole
from backend.app.schemas.user import UserResponse


class UserRegister(BaseModel):
    """
    Schema for user registration.

    Used by POST /auth/register endpoint. Everyone registers as EMPLOYEE;
    `pto_hours` is the opening balance.
    """
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., description="User email address")
    phone: str = Field(..., min_length=1, max_length=50)
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    can_donate: bool = False
    need_support: bool = False
    pto_hours: int = Field(default=0, ge=0, description="Opening PTO balance in hours")
    company_id: Optional[int] = Field(default=None, description="Company the user belongs to")


class UserLogin(BaseModel):
    """
    Schema for user login.

    Supports login with either username or email.
    """
    username: str = Field(..., description="Username or email")
    password: str = Field(..., description="Password")


class PasswordChange(BaseModel):
    """Schema for changing one's own password."""
    current_password: str
    new_password: str = Field(..., min_length=6)


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by successful login/register operations.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    role: UserRole = Field(..., description="User role")
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
