"""
Support Request Pydantic schemas.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import date, datetime
from typing import Optional, List
from backend.app.models.enums import RequestStatus


class SupportRequestCreate(BaseModel):
    """Schema for asking colleagues for PTO hours. The owner is the authenticated user."""
    hours_needed: int = Field(..., ge=1, description="Hours needed (positive)")
    urgency: str = Field(..., min_length=1, max_length=20, description="high, medium or low")
    category: str = Field(..., min_length=1, max_length=100)
    reason: str = Field(..., min_length=1)
    start_date: date
    end_date: Optional[date] = None

    @field_validator("urgency", mode="before")
    @classmethod
    def normalize_urgency(cls, value):
        # Before length checks, so blank urgency is rejected
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SupportRequestResponse(BaseModel):
    id: int
    user_id: int
    hours_needed: int
    hours_received: int
    urgency: str
    category: str
    reason: str
    start_date: date
    end_date: Optional[date]
    hours_remaining: int
    status: RequestStatus
    created_at: datetime

    class Config:
        from_attributes = True


class SupportRequestDetail(SupportRequestResponse):
    """Support request with its owner's name, for the public board."""
    first_name: str
    last_name: str


class SupportRequestListResponse(BaseModel):
    requests: List[SupportRequestDetail]
    total: int


class UserSupportRequestListResponse(BaseModel):
    requests: List[SupportRequestResponse]
    total: int
