"""
User database model.

This module defines the User SQLAlchemy model: identity, credentials and
the PTO balance donations draw from.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import UserRole


class User(Base):
    """
    User model for authentication and PTO balances.

    `available_pto_hours` is only decremented by the donation ledger and only
    incremented by admin grants (or the opening balance at registration).
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("available_pto_hours >= 0", name="ck_users_pto_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    role = Column(Enum(UserRole), default=UserRole.EMPLOYEE, nullable=False)

    # Optional company membership
    company_id = Column(Integer, ForeignKey("companies.id"), index=True, nullable=True)

    # UI hints only, never enforced
    can_donate = Column(Boolean, default=False, nullable=False)
    need_support = Column(Boolean, default=False, nullable=False)

    # PTO balance in whole hours
    available_pto_hours = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}', pto={self.available_pto_hours})>"
