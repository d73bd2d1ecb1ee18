"""
Company Pydantic schemas.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional, List


class CompanyCreate(BaseModel):
    """Schema for creating a company."""
    name: str = Field(..., min_length=1, max_length=200)
    allow_cross_company: bool = False


class CompanyUpdate(BaseModel):
    """Schema for updating a company (only provided fields change)."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    allow_cross_company: Optional[bool] = None

    @model_validator(mode="after")
    def reject_nulls(self):
        for field in self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class CompanyResponse(BaseModel):
    id: int
    name: str
    allow_cross_company: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CompanyListResponse(BaseModel):
    companies: List[CompanyResponse]
    total: int
