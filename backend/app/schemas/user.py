"""
User Pydantic schemas.

Profile responses, the profile patch and per-user donation stats.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional
from backend.app.models.enums import UserRole


class UserResponse(BaseModel):
    """Schema for user profile (never includes the password hash)."""
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    username: str
    role: UserRole
    company_id: Optional[int] = None
    can_donate: bool
    need_support: bool
    available_pto_hours: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserProfileUpdate(BaseModel):
    """
    Patch for one's own profile.

    Only fields present in the request body are applied. PTO balance,
    role and credentials are not patchable here.
    """
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, min_length=1, max_length=50)
    can_donate: Optional[bool] = None
    need_support: Optional[bool] = None
    company_id: Optional[int] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for field in ("first_name", "last_name", "phone", "can_donate", "need_support"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class UserStats(BaseModel):
    """Donation stats for a user."""
    total_donated: int
    people_helped: int
    available_pto: int
