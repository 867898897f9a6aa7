"""
api/routes/companies.py
-----------------------
GET /api/companies/current  — The caller's company (company.view).
PUT /api/companies/current  — Update its profile (company.manage).
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import require
from summit.schemas.company import CompanyRead, CompanyUpdate
from summit.services.company_service import CompanyService

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.get("/current", response_model=CompanyRead, summary="Get the current company")
async def get_current_company(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.COMPANY_VIEW))],
) -> CompanyRead:
    company = await CompanyService.get_current(db, auth.company_id)
    return CompanyRead.model_validate(company)


@router.put("/current", response_model=CompanyRead, summary="Update the current company")
async def update_current_company(
    body: CompanyUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.COMPANY_MANAGE))],
) -> CompanyRead:
    company = await CompanyService.update_current(db, auth.company_id, body)
    return CompanyRead.model_validate(company)
