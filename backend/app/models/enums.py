"""
Enumerations for the PTO donation platform.

Defines user roles and support request lifecycle values.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Manages companies, users and PTO grants
        EMPLOYEE: Donates hours and requests support (default role)
    """
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class RequestStatus(str, enum.Enum):
    """
    Support request status.

    One-way transition: active -> fulfilled. No reopening.
    """
    ACTIVE = "active"
    FULFILLED = "fulfilled"


class Urgency(str, enum.Enum):
    """Support request urgency, used only for display ordering."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
