"""
Donation Pydantic schemas.

Defines request and response models for the donation ledger.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from backend.app.models.donation import MAX_DONATION_HOURS
from backend.app.models.enums import RequestStatus


class DonationCreate(BaseModel):
    """Schema for donating hours. The donor is the authenticated user."""
    request_id: int = Field(..., ge=1, description="Support request to fund")
    hours: int = Field(..., ge=1, le=MAX_DONATION_HOURS, description="Whole PTO hours to donate")
    message: Optional[str] = Field(None, description="Optional note to the recipient")


class DonationResponse(BaseModel):
    """Schema for a single donation ledger entry."""
    id: int
    donor_id: int
    request_id: int
    hours: int
    message: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class DonationReceipt(BaseModel):
    """Result of a committed donation, with the post-donation balances."""
    message: str = "Donation successful"
    donation: DonationResponse
    donor_available_pto_hours: int
    request_hours_needed: int
    request_hours_received: int
    request_status: RequestStatus


class DonationHistoryItem(BaseModel):
    """Donation made by a user, with the request and recipient it went to."""
    id: int
    request_id: int
    hours: int
    message: Optional[str]
    created_at: datetime
    reason: str
    category: str
    recipient_id: int
    recipient_first_name: str
    recipient_last_name: str


class DonationHistoryResponse(BaseModel):
    donations: List[DonationHistoryItem]
    total: int


class LedgerSummary(BaseModel):
    """Ledger consistency view of one support request."""
    request_id: int
    hours_needed: int
    hours_received: int
    donated_hours_total: int
    donation_count: int
    status: RequestStatus
    balanced: bool
