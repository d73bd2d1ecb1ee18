"""
Donation API Endpoints.

The authenticated user donates PTO hours to an active support request.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from backend.app.db.session import get_db
from backend.app.schemas.donation import DonationCreate, DonationReceipt
from backend.app.core.dependencies import get_current_user
from backend.app.domain.ledger.ledger_service import LedgerService
from backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/donations", tags=["Donations"])


@router.post("", response_model=DonationReceipt, status_code=status.HTTP_201_CREATED)
async def make_donation(
    donation_data: DonationCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Donate hours from the current user's balance.

    Errors:
    - 400 ERR_DONATION_002: balance too low
    - 404 ERR_DONATION_003: request missing or already fulfilled
    - 403 ERR_DONATION_004: cross-company donation blocked by policy
    - 500 ERR_STORE_001: store failure, nothing was applied
    """
    receipt = await LedgerService.record_donation(
        db,
        donor_id=current_user["user_id"],
        request_id=donation_data.request_id,
        hours=donation_data.hours,
        message=donation_data.message
    )

    # Already committed: a failed audit write must not be reported as a failed donation
    try:
        await log_event(
            db=db,
            action=AuditAction.DONATION_RECORDED,
            actor_id=current_user["user_id"],
            actor_username=current_user["sub"],
            metadata={
                "donation_id": receipt.donation.id,
                "request_id": donation_data.request_id,
                "hours": donation_data.hours,
                "request_status": receipt.request_status.value
            }
        )
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Audit entry for donation %s was not written", receipt.donation.id)

    return receipt
