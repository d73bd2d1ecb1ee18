"""
Support Request database model.

A recipient's ask for a number of PTO hours with a running funded total.
"""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import RequestStatus


class SupportRequest(Base):
    """
    Support request model.

    `hours_needed` is fixed at creation. `hours_received` and `status` are
    written only by the donation ledger.
    """
    __tablename__ = "support_requests"
    __table_args__ = (
        CheckConstraint("hours_needed > 0", name="ck_support_requests_hours_needed_positive"),
        CheckConstraint("hours_received >= 0", name="ck_support_requests_hours_received_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Recipient
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Funding
    hours_needed = Column(Integer, nullable=False)
    hours_received = Column(Integer, default=0, nullable=False)

    # Details
    urgency = Column(String(20), nullable=False)
    category = Column(String(100), nullable=False)
    reason = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)

    status = Column(Enum(RequestStatus, values_callable=lambda e: [m.value for m in e]),
                    default=RequestStatus.ACTIVE, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def hours_remaining(self) -> int:
        return max(self.hours_needed - self.hours_received, 0)

    def __repr__(self):
        return (
            f"<SupportRequest(id={self.id}, user={self.user_id}, "
            f"{self.hours_received}/{self.hours_needed}, status='{self.status.value}')>"
        )
