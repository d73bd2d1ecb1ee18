"""
Donation database model.

Immutable ledger entry of hours moved from a donor to a support request.
"""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base

# Largest value an INTEGER hours column holds
MAX_DONATION_HOURS = 2**31 - 1


class Donation(Base):
    """
    Donation model.

    NO updates or deletions allowed. The sum of `hours` over a request's
    donations equals that request's `hours_received`.
    """
    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint("hours > 0", name="ck_donations_hours_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Linkage
    donor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    request_id = Column(Integer, ForeignKey("support_requests.id"), nullable=False, index=True)

    hours = Column(Integer, nullable=False)
    message = Column(Text, nullable=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Donation(id={self.id}, donor={self.donor_id}, request={self.request_id}, hours={self.hours})>"
