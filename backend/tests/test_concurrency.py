"""
Concurrency Tests.

Validates that concurrent donations neither lose updates nor overdraw.
Runs against a file-backed SQLite database so each session gets its own
connection and the engine's write serialization is actually exercised.
"""

import pytest
import asyncio
from datetime import date
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from backend.app.core.exceptions import InsufficientBalanceError, SupportRequestNotFoundError
from backend.app.db.session import Base, build_engine
from backend.app.domain.ledger.ledger_service import LedgerService
from backend.app.models.donation import Donation
from backend.app.models.enums import RequestStatus, UserRole
from backend.app.models.support_request import SupportRequest
from backend.app.models.user import User


@pytest.fixture
async def session_factory(tmp_path):
    file_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")

    async with file_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)

    await file_engine.dispose()


async def seed(session_factory, donor_balances, hours_needed):
    """Create donors with the given balances and one active request."""
    async with session_factory() as db:
        recipient = User(
            first_name="Robin", last_name="Recipient", email="robin@test.com",
            phone="555-0001", username="robin", hashed_password="not-used",
            role=UserRole.EMPLOYEE, available_pto_hours=0
        )
        db.add(recipient)
        await db.flush()

        donors = []
        for index, balance in enumerate(donor_balances):
            donor = User(
                first_name=f"Donor{index}", last_name="Tester", email=f"donor{index}@test.com",
                phone="555-0002", username=f"donor{index}", hashed_password="not-used",
                role=UserRole.EMPLOYEE, available_pto_hours=balance
            )
            db.add(donor)
            donors.append(donor)

        support_request = SupportRequest(
            user_id=recipient.id, hours_needed=hours_needed, hours_received=0,
            urgency="high", category="medical", reason="Recovery",
            start_date=date(2026, 11, 1), status=RequestStatus.ACTIVE
        )
        db.add(support_request)
        await db.commit()

        return [d.id for d in donors], support_request.id


async def donate(session_factory, donor_id, request_id, hours):
    async with session_factory() as db:
        return await LedgerService.record_donation(db, donor_id, request_id, hours)


@pytest.mark.asyncio
async def test_two_donors_fund_request_concurrently(session_factory):
    """Both credits land; the second one to commit closes the request."""
    (first, second), request_id = await seed(session_factory, [20, 20], hours_needed=40)

    receipts = await asyncio.gather(
        donate(session_factory, first, request_id, 20),
        donate(session_factory, second, request_id, 20),
    )

    assert sorted(r.request_hours_received for r in receipts) == [20, 40]
    assert sorted(r.request_status.value for r in receipts) == ["active", "fulfilled"]

    async with session_factory() as db:
        summary = await LedgerService.get_request_ledger(db, request_id)
        assert summary.hours_received == 40
        assert summary.status == RequestStatus.FULFILLED
        assert summary.donation_count == 2
        assert summary.balanced

        balances = (await db.execute(
            select(User.available_pto_hours).where(User.id.in_([first, second]))
        )).scalars().all()
        assert balances == [0, 0]


@pytest.mark.asyncio
async def test_same_donor_cannot_overdraw_concurrently(session_factory):
    """Two 15-hour donations from a 20-hour balance: exactly one succeeds."""
    (donor_id,), request_id = await seed(session_factory, [20], hours_needed=100)

    results = await asyncio.gather(
        donate(session_factory, donor_id, request_id, 15),
        donate(session_factory, donor_id, request_id, 15),
        return_exceptions=True,
    )

    failures = [r for r in results if isinstance(r, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], InsufficientBalanceError)

    async with session_factory() as db:
        balance = await db.scalar(select(User.available_pto_hours).where(User.id == donor_id))
        assert balance == 5

        summary = await LedgerService.get_request_ledger(db, request_id)
        assert summary.hours_received == 15
        assert summary.donation_count == 1


@pytest.mark.asyncio
async def test_no_donation_lands_after_request_closes(session_factory):
    """Ten donors race for a 30-hour request at 5 hours each: six get in."""
    donor_ids, request_id = await seed(session_factory, [5] * 10, hours_needed=30)

    results = await asyncio.gather(
        *(donate(session_factory, donor_id, request_id, 5) for donor_id in donor_ids),
        return_exceptions=True,
    )

    accepted = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, Exception)]
    assert len(accepted) == 6
    assert all(isinstance(r, SupportRequestNotFoundError) for r in rejected)
    assert sum(1 for r in accepted if r.request_status == RequestStatus.FULFILLED) == 1

    async with session_factory() as db:
        summary = await LedgerService.get_request_ledger(db, request_id)
        assert summary.hours_received == 30
        assert summary.status == RequestStatus.FULFILLED
        assert summary.balanced

        # Rejected donors keep their hours
        remaining = await db.scalar(
            select(func.sum(User.available_pto_hours)).where(User.id.in_(donor_ids))
        )
        assert remaining == 20
        assert await db.scalar(select(func.count(Donation.id))) == 6
