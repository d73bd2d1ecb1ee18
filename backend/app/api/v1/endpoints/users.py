"""
User API Endpoints.

Profiles, per-user support requests, donation history and donation stats.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.company import Company
from backend.app.models.support_request import SupportRequest
from backend.app.models.user import User
from backend.app.schemas.user import UserResponse, UserProfileUpdate, UserStats
from backend.app.schemas.support_request import SupportRequestResponse, UserSupportRequestListResponse
from backend.app.schemas.donation import DonationHistoryResponse
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import OwnershipGuard
from backend.app.services.audit import log_event, AuditAction
from backend.app.services.profile import apply_profile_patch
from backend.app.services.stats import StatsService

router = APIRouter(prefix="/users", tags=["Users"])
ownership_guard = OwnershipGuard()


@router.patch("/me", response_model=UserResponse)
async def update_own_profile(
    patch: UserProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update the current user's profile.

    Only fields present in the body change. The PTO balance is never
    patchable; it moves only through donations and admin grants.
    """
    user = await db.get(User, current_user["user_id"])

    if "company_id" in patch.model_fields_set and patch.company_id is not None:
        if not await db.get(Company, patch.company_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Company not found"
            )

    applied = apply_profile_patch(user, patch)
    await db.commit()
    await db.refresh(user)

    if applied:
        await log_event(
            db=db,
            action=AuditAction.PROFILE_UPDATED,
            actor_id=user.id,
            actor_username=user.username,
            target_user_id=user.id,
            target_username=user.username,
            metadata={"updated_fields": applied}
        )

    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_profile(
    user_id: int = Path(..., description="User ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a user's profile."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)


@router.get("/{user_id}/requests", response_model=UserSupportRequestListResponse)
async def list_user_requests(
    user_id: int = Path(..., description="User ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List every support request a user has opened, newest first, any status."""
    result = await db.execute(
        select(SupportRequest)
        .where(SupportRequest.user_id == user_id)
        .order_by(SupportRequest.created_at.desc(), SupportRequest.id.desc())
    )
    requests = result.scalars().all()

    return UserSupportRequestListResponse(
        requests=[SupportRequestResponse.model_validate(r) for r in requests],
        total=len(requests)
    )


@router.get("/{user_id}/donations", response_model=DonationHistoryResponse)
async def list_user_donations(
    user_id: int = Path(..., description="User ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Donations made by a user (own history, or any user's for admins)."""
    ownership_guard.enforce(user_id, current_user, "donation history")

    donations = await StatsService.get_donation_history(db, user_id)
    return DonationHistoryResponse(donations=donations, total=len(donations))


@router.get("/{user_id}/stats", response_model=UserStats)
async def get_user_stats(
    user_id: int = Path(..., description="User ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Total hours donated, distinct people helped and current balance."""
    ownership_guard.enforce(user_id, current_user, "stats")

    return await StatsService.get_user_stats(db, user_id)
