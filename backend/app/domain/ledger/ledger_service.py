"""
Donation Ledger Service (Domain Logic).

Moves PTO hours from a donor's balance to a support request's funded total
as one atomic unit of work, closing the request once it is fully funded.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    AppException,
    DonationValidationError,
    InsufficientBalanceError,
    SupportRequestNotFoundError,
    CrossCompanyDonationError,
    StoreFailureError,
)
from backend.app.db.session import unit_of_work
from backend.app.models.company import Company
from backend.app.models.donation import Donation, MAX_DONATION_HOURS
from backend.app.models.enums import RequestStatus
from backend.app.models.support_request import SupportRequest
from backend.app.models.user import User
from backend.app.schemas.donation import DonationReceipt, DonationResponse, LedgerSummary

logger = logging.getLogger(__name__)


def _is_whole_number(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class LedgerService:

    @staticmethod
    async def record_donation(
        db: AsyncSession,
        donor_id: int,
        request_id: int,
        hours: int,
        message: Optional[str] = None,
        enforce_cross_company: Optional[bool] = None,
    ) -> DonationReceipt:
        """
        Record a donation of `hours` from `donor_id` to `request_id`.

        Flow (single transaction, commit or full rollback):
        1. Debit the donor, only if active and the balance covers `hours`
        2. Credit the request, only if it is still active
        3. Optionally enforce the cross-company policy
        4. Insert the immutable Donation row
        5. Close the request if the post-update total reaches the target

        The balance and status checks are the WHERE clauses of the updates
        themselves, so the row lock taken by each update serializes
        concurrent donors and concurrent funders of the same request.
        Rows are always locked donor first, then request.

        Args:
            db: Injected session; the unit of work commits or rolls it back
            donor_id: User giving hours
            request_id: Support request receiving hours
            hours: Whole hours, at least 1
            message: Stored verbatim
            enforce_cross_company: Overrides settings.enforce_cross_company_policy

        Raises:
            DonationValidationError: malformed input, store untouched
            InsufficientBalanceError: donor missing, blocked or balance too low
            SupportRequestNotFoundError: request missing or already fulfilled
            CrossCompanyDonationError: policy enabled and donor's company disallows it
            StoreFailureError: any persistence error, after rollback
        """
        if not _is_whole_number(donor_id) or not _is_whole_number(request_id):
            raise DonationValidationError("donor_id and request_id must be integers")
        if not _is_whole_number(hours) or hours < 1:
            raise DonationValidationError("hours must be a positive whole number", {"hours": hours})

        if enforce_cross_company is None:
            enforce_cross_company = settings.enforce_cross_company_policy

        try:
            # Larger than any storable balance
            if hours > MAX_DONATION_HOURS:
                raise InsufficientBalanceError(donor_id, hours)

            async with unit_of_work(db):
                # 1. Debit donor
                debit = await db.execute(
                    update(User)
                    .where(User.id == donor_id, User.is_active.is_(True), User.available_pto_hours >= hours)
                    .values(available_pto_hours=User.available_pto_hours - hours)
                    .execution_options(synchronize_session=False)
                )
                if debit.rowcount != 1:
                    raise InsufficientBalanceError(donor_id, hours)

                # 2. Credit request
                credit = await db.execute(
                    update(SupportRequest)
                    .where(SupportRequest.id == request_id, SupportRequest.status == RequestStatus.ACTIVE)
                    .values(hours_received=SupportRequest.hours_received + hours)
                    .execution_options(synchronize_session=False)
                )
                if credit.rowcount != 1:
                    raise SupportRequestNotFoundError(request_id)

                # 3. Policy
                if enforce_cross_company:
                    await LedgerService._enforce_cross_company_policy(db, donor_id, request_id)

                # 4. Ledger entry
                donation = Donation(
                    donor_id=donor_id,
                    request_id=request_id,
                    hours=hours,
                    message=message,
                    created_at=datetime.now(timezone.utc),
                )
                db.add(donation)
                await db.flush()

                # 5. Threshold check on the post-update row
                funded = (await db.execute(
                    select(SupportRequest.hours_needed, SupportRequest.hours_received)
                    .where(SupportRequest.id == request_id)
                )).one()

                request_status = RequestStatus.ACTIVE
                if funded.hours_received >= funded.hours_needed:
                    await db.execute(
                        update(SupportRequest)
                        .where(SupportRequest.id == request_id)
                        .values(status=RequestStatus.FULFILLED)
                        .execution_options(synchronize_session=False)
                    )
                    request_status = RequestStatus.FULFILLED

                donor_balance = (await db.execute(
                    select(User.available_pto_hours).where(User.id == donor_id)
                )).scalar_one()

        except AppException as exc:
            logger.info(
                "Donation rejected (%s): donor=%s request=%s hours=%s",
                exc.error_code, donor_id, request_id, hours
            )
            raise
        except SQLAlchemyError as exc:
            logger.exception("Donation store failure: donor=%s request=%s hours=%s", donor_id, request_id, hours)
            raise StoreFailureError("Donation") from exc

        logger.info(
            "Donation %s recorded: donor=%s request=%s hours=%s status=%s",
            donation.id, donor_id, request_id, hours, request_status.value
        )

        return DonationReceipt(
            donation=DonationResponse.model_validate(donation),
            donor_available_pto_hours=donor_balance,
            request_hours_needed=funded.hours_needed,
            request_hours_received=funded.hours_received,
            request_status=request_status,
        )

    @staticmethod
    async def _enforce_cross_company_policy(db: AsyncSession, donor_id: int, request_id: int) -> None:
        """
        Reject donations across companies unless the donor's company allows it.

        Users without a company are not restricted.
        """
        donor_company_id = (await db.execute(
            select(User.company_id).where(User.id == donor_id)
        )).scalar_one_or_none()

        recipient_company_id = (await db.execute(
            select(User.company_id)
            .join(SupportRequest, SupportRequest.user_id == User.id)
            .where(SupportRequest.id == request_id)
        )).scalar_one_or_none()

        if donor_company_id is None or recipient_company_id is None:
            return
        if donor_company_id == recipient_company_id:
            return

        allowed = (await db.execute(
            select(Company.allow_cross_company).where(Company.id == donor_company_id)
        )).scalar_one_or_none()

        if not allowed:
            raise CrossCompanyDonationError(donor_company_id, recipient_company_id)

    @staticmethod
    async def get_request_ledger(db: AsyncSession, request_id: int) -> Optional[LedgerSummary]:
        """
        Compare a request's running total with the sum of its donation rows.

        Returns None if the request does not exist.
        """
        support_request = (await db.execute(
            select(SupportRequest)
            .where(SupportRequest.id == request_id)
            .execution_options(populate_existing=True)
        )).scalar_one_or_none()

        if not support_request:
            return None

        totals = (await db.execute(
            select(
                func.coalesce(func.sum(Donation.hours), 0).label("total"),
                func.count(Donation.id).label("count"),
            ).where(Donation.request_id == request_id)
        )).one()

        return LedgerSummary(
            request_id=support_request.id,
            hours_needed=support_request.hours_needed,
            hours_received=support_request.hours_received,
            donated_hours_total=totals.total,
            donation_count=totals.count,
            status=support_request.status,
            balanced=totals.total == support_request.hours_received,
        )
