"""
Company API Endpoints.

Any authenticated user may browse companies; only admins create or edit them.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from backend.app.db.session import get_db
from backend.app.models.company import Company
from backend.app.schemas.company import CompanyCreate, CompanyUpdate, CompanyResponse, CompanyListResponse
from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import require_admin
from backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/companies", tags=["Companies"])


async def _ensure_name_available(db: AsyncSession, name: str, exclude_id: int = None):
    query = select(Company.id).where(Company.name == name)
    if exclude_id is not None:
        query = query.where(Company.id != exclude_id)

    if (await db.execute(query)).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Company name already exists"
        )


@router.get("", response_model=CompanyListResponse)
async def list_companies(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List all companies by name."""
    result = await db.execute(select(Company).order_by(Company.name))
    companies = result.scalars().all()

    return CompanyListResponse(
        companies=[CompanyResponse.model_validate(c) for c in companies],
        total=len(companies)
    )


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: int = Path(..., description="Company ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    company = await db.get(Company, company_id)

    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found"
        )

    return CompanyResponse.model_validate(company)


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    company_data: CompanyCreate,
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a company (admin-only). Names are unique."""
    await _ensure_name_available(db, company_data.name)

    company = Company(
        name=company_data.name,
        allow_cross_company=company_data.allow_cross_company
    )
    db.add(company)
    await db.commit()
    await db.refresh(company)

    await log_event(
        db=db,
        action=AuditAction.COMPANY_CREATED,
        actor_id=admin["user_id"],
        actor_username=admin["sub"],
        metadata={"company_id": company.id, "name": company.name}
    )

    return CompanyResponse.model_validate(company)


@router.patch("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_data: CompanyUpdate,
    company_id: int = Path(..., description="Company ID"),
    admin: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update a company's name or cross-company flag (admin-only)."""
    company = await db.get(Company, company_id)

    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found"
        )

    update_data = company_data.model_dump(exclude_unset=True)
    if "name" in update_data:
        await _ensure_name_available(db, update_data["name"], exclude_id=company.id)

    for field, value in update_data.items():
        setattr(company, field, value)

    await db.commit()
    await db.refresh(company)

    await log_event(
        db=db,
        action=AuditAction.COMPANY_UPDATED,
        actor_id=admin["user_id"],
        actor_username=admin["sub"],
        metadata={"company_id": company.id, "updated_fields": list(update_data.keys())}
    )

    return CompanyResponse.model_validate(company)
