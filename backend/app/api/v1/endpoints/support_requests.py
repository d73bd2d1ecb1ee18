"""
Support Request API Endpoints.

Employees open requests for PTO hours; everyone can browse the active board.
Funding progress and status are written only by the donation ledger.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, case
from backend.app.db.session import get_db
from backend.app.models.support_request import SupportRequest
from backend.app.models.user import User
from backend.app.models.enums import RequestStatus, Urgency
from backend.app.schemas.support_request import (
    SupportRequestCreate, SupportRequestResponse, SupportRequestDetail, SupportRequestListResponse
)
from backend.app.core.dependencies import get_current_user
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/requests", tags=["Support Requests"])

# high first, then medium, then anything else
URGENCY_RANK = case(
    (SupportRequest.urgency == Urgency.HIGH.value, 1),
    (SupportRequest.urgency == Urgency.MEDIUM.value, 2),
    else_=3
)


def _with_owner_name():
    return select(SupportRequest, User.first_name, User.last_name).join(
        User, SupportRequest.user_id == User.id
    )


def _to_detail(support_request: SupportRequest, first_name: str, last_name: str) -> SupportRequestDetail:
    return SupportRequestDetail(
        **SupportRequestResponse.model_validate(support_request).model_dump(),
        first_name=first_name,
        last_name=last_name
    )


@router.post("", response_model=SupportRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_support_request(
    request_data: SupportRequestCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Open a support request for the current user.

    Starts active with zero hours received.
    """
    support_request = SupportRequest(
        user_id=current_user["user_id"],
        hours_needed=request_data.hours_needed,
        hours_received=0,
        urgency=request_data.urgency,
        category=request_data.category,
        reason=request_data.reason,
        start_date=request_data.start_date,
        end_date=request_data.end_date,
        status=RequestStatus.ACTIVE
    )

    db.add(support_request)
    await db.commit()
    await db.refresh(support_request)

    await log_event(
        db=db,
        action=AuditAction.SUPPORT_REQUEST_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={
            "request_id": support_request.id,
            "hours_needed": support_request.hours_needed,
            "urgency": support_request.urgency
        }
    )

    return SupportRequestResponse.model_validate(support_request)


@router.get("", response_model=SupportRequestListResponse)
async def list_active_requests(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List active support requests.

    Ordered by urgency (high, medium, other), then newest first.
    """
    query = (
        _with_owner_name()
        .where(SupportRequest.status == RequestStatus.ACTIVE)
        .order_by(URGENCY_RANK, SupportRequest.created_at.desc(), SupportRequest.id.desc())
    )
    rows = (await db.execute(query)).all()

    return SupportRequestListResponse(
        requests=[_to_detail(*row) for row in rows],
        total=len(rows)
    )


@router.get("/{request_id}", response_model=SupportRequestDetail)
async def get_support_request(
    request_id: int = Path(..., description="Support request ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get one support request (any status) with its owner's name."""
    row = (await db.execute(
        _with_owner_name().where(SupportRequest.id == request_id)
    )).first()

    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Request not found"
        )

    return _to_detail(*row)
