"""
Admin API Endpoints.

Provides admin-only user management, PTO grants and ledger inspection,
with audit logging.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from backend.app.db.session import get_db, unit_of_work
from backend.app.models.user import User
from backend.app.schemas.admin import (
    UserListResponse, BlockUserRequest, UnblockUserRequest, PtoGrantRequest, PtoGrantResponse,
    PasswordResetRequest, AdminActionResponse, AuditTrailResponse, AuditLogResponse
)
from backend.app.schemas.donation import LedgerSummary
from backend.app.schemas.user import UserResponse
from backend.app.core.guards import require_admin
from backend.app.core.security import get_password_hash
from backend.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from backend.app.domain.ledger.ledger_service import LedgerService
from backend.app.services.audit import log_admin_action, AuditAction, get_audit_trail

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return user


@router.get("/users", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all users in the system (admin-only).

    Returns paginated user list with balances and status information.
    """
    total = (await db.execute(select(func.count(User.id)))).scalar()

    offset = (page - 1) * page_size
    query = select(User).order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(page_size)
    result = await db.execute(query)
    users = result.scalars().all()

    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Get detailed information about a specific user (admin-only)."""
    return UserResponse.model_validate(await _get_user_or_404(db, user_id))


@router.post("/users/{user_id}/block", response_model=AdminActionResponse)
async def block_user(
    user_id: int,
    request: BlockUserRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Block a user and revoke all their active tokens (admin-only).

    This is the removal path: users are never hard-deleted because their
    donations stay in the ledger.
    """
    target_user = await _get_user_or_404(db, user_id)

    if target_user.id == admin["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot block yourself"
        )

    if not target_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already blocked"
        )

    target_user.is_active = False
    await db.commit()

    await revoke_all_user_tokens(user_id)

    audit_log = await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=AuditAction.USER_BLOCKED,
        target_user_id=target_user.id,
        target_username=target_user.username,
        metadata={"reason": request.reason} if request.reason else None
    )

    return AdminActionResponse(
        success=True,
        message=f"User '{target_user.username}' has been blocked",
        user_id=user_id,
        action=AuditAction.USER_BLOCKED,
        audit_log_id=audit_log.id
    )


@router.post("/users/{user_id}/unblock", response_model=AdminActionResponse)
async def unblock_user(
    user_id: int,
    request: UnblockUserRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Unblock a user and clear token revocations (admin-only)."""
    target_user = await _get_user_or_404(db, user_id)

    if target_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already active"
        )

    target_user.is_active = True
    await db.commit()

    await clear_user_token_revocation(user_id)

    audit_log = await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=AuditAction.USER_UNBLOCKED,
        target_user_id=target_user.id,
        target_username=target_user.username,
        metadata={"reason": request.reason} if request.reason else None
    )

    return AdminActionResponse(
        success=True,
        message=f"User '{target_user.username}' has been unblocked",
        user_id=user_id,
        action=AuditAction.USER_UNBLOCKED,
        audit_log_id=audit_log.id
    )


@router.post("/users/{user_id}/pto-grants", response_model=PtoGrantResponse)
async def grant_pto_hours(
    user_id: int,
    grant: PtoGrantRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Add PTO hours to a user's balance (admin-only).

    The only way hours enter the system after registration. Applied as an
    in-database increment so it cannot lose a concurrent donation's debit.
    """
    target_user = await _get_user_or_404(db, user_id)

    async with unit_of_work(db):
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(available_pto_hours=User.available_pto_hours + grant.hours)
            .execution_options(synchronize_session=False)
        )
        new_balance = (await db.execute(
            select(User.available_pto_hours).where(User.id == user_id)
        )).scalar_one()

    audit_log = await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=AuditAction.PTO_GRANTED,
        target_user_id=target_user.id,
        target_username=target_user.username,
        metadata={"hours": grant.hours, "reason": grant.reason, "new_balance": new_balance}
    )

    return PtoGrantResponse(
        success=True,
        message=f"Granted {grant.hours} PTO hours to '{target_user.username}'",
        user_id=user_id,
        action=AuditAction.PTO_GRANTED,
        audit_log_id=audit_log.id,
        available_pto_hours=new_balance
    )


@router.post("/users/{user_id}/reset-password", response_model=AdminActionResponse)
async def reset_password(
    user_id: int,
    payload: PasswordResetRequest,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Set a new password for a user (admin-only)."""
    target_user = await _get_user_or_404(db, user_id)

    target_user.hashed_password = get_password_hash(payload.new_password)
    await db.commit()

    audit_log = await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=AuditAction.PASSWORD_RESET,
        target_user_id=target_user.id,
        target_username=target_user.username
    )

    return AdminActionResponse(
        success=True,
        message=f"Password for '{target_user.username}' has been reset",
        user_id=user_id,
        action=AuditAction.PASSWORD_RESET,
        audit_log_id=audit_log.id
    )


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def list_audit_logs(
    target_user_id: Optional[int] = Query(None, description="Filter by target user"),
    action: Optional[str] = Query(None, description="Filter by action"),
    limit: int = Query(100, ge=1, le=500),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """View the audit trail, most recent first (admin-only)."""
    logs = await get_audit_trail(db, target_user_id=target_user_id, action=action, limit=limit)

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )


@router.get("/requests/{request_id}/ledger", response_model=LedgerSummary)
async def get_request_ledger(
    request_id: int,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Check that a request's received hours match its donation rows (admin-only)."""
    summary = await LedgerService.get_request_ledger(db, request_id)

    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Request not found"
        )

    return summary
