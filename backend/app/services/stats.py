"""
Donation Stats Service.

Read-only aggregation over the donation ledger for dashboards.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List

from backend.app.models.donation import Donation
from backend.app.models.support_request import SupportRequest
from backend.app.models.user import User
from backend.app.schemas.donation import DonationHistoryItem
from backend.app.schemas.user import UserStats


class StatsService:

    @staticmethod
    async def get_user_stats(db: AsyncSession, user_id: int) -> UserStats:
        """
        Get donation stats for a user.

        Unknown users get zeros rather than an error.
        """
        total_donated = (await db.execute(
            select(func.coalesce(func.sum(Donation.hours), 0)).where(Donation.donor_id == user_id)
        )).scalar()

        # Distinct recipients, not distinct requests
        people_helped = (await db.execute(
            select(func.count(func.distinct(SupportRequest.user_id)))
            .select_from(Donation)
            .join(SupportRequest, Donation.request_id == SupportRequest.id)
            .where(Donation.donor_id == user_id)
        )).scalar()

        available_pto = (await db.execute(
            select(User.available_pto_hours).where(User.id == user_id)
        )).scalar_one_or_none()

        return UserStats(
            total_donated=total_donated or 0,
            people_helped=people_helped or 0,
            available_pto=available_pto or 0,
        )

    @staticmethod
    async def get_donation_history(db: AsyncSession, donor_id: int) -> List[DonationHistoryItem]:
        """Donations made by a user with the request and recipient, newest first."""
        query = (
            select(
                Donation.id,
                Donation.request_id,
                Donation.hours,
                Donation.message,
                Donation.created_at,
                SupportRequest.reason,
                SupportRequest.category,
                User.id.label("recipient_id"),
                User.first_name.label("recipient_first_name"),
                User.last_name.label("recipient_last_name"),
            )
            .join(SupportRequest, Donation.request_id == SupportRequest.id)
            .join(User, SupportRequest.user_id == User.id)
            .where(Donation.donor_id == donor_id)
            .order_by(Donation.created_at.desc(), Donation.id.desc())
        )

        rows = (await db.execute(query)).mappings().all()
        return [DonationHistoryItem(**row) for row in rows]
