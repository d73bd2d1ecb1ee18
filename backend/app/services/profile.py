"""
Profile patching.

Applies a validated UserProfileUpdate to a User through a fixed field list.
"""

from typing import List
from backend.app.models.user import User
from backend.app.schemas.user import UserProfileUpdate

PATCHABLE_PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "phone",
    "can_donate",
    "need_support",
    "company_id",
)


def apply_profile_patch(user: User, patch: UserProfileUpdate) -> List[str]:
    """
    Copy the fields present in the patch onto the user.

    Returns:
        Names of the fields that were applied
    """
    present = patch.model_fields_set
    applied = []

    for field in PATCHABLE_PROFILE_FIELDS:
        if field in present:
            setattr(user, field, getattr(patch, field))
            applied.append(field)

    return applied
