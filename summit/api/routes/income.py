"""
api/routes/income.py
--------------------
GET    /api/income        — Paginated; ?category_id, ?start_date, ?end_date.
POST   /api/income
GET    /api/income/{id}
PUT    /api/income/{id}
DELETE /api/income/{id}
"""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import Pagination, get_pagination, require
from summit.schemas.common import Page, PageMeta, SuccessResponse
from summit.schemas.ledger import IncomeCreate, IncomeRead, IncomeUpdate
from summit.services.bookkeeping_service import IncomeService

router = APIRouter(prefix="/income", tags=["Income"])


@router.get("", response_model=Page[IncomeRead], summary="List income")
async def list_income(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
    paging: Annotated[Pagination, Depends(get_pagination)],
    category_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Page[IncomeRead]:
    rows, total = await IncomeService.list_income(
        db,
        auth.company_id,
        paging.page,
        paging.limit,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
    )
    return Page[IncomeRead](
        data=[IncomeRead.model_validate(i) for i in rows],
        meta=PageMeta.build(total, paging.page, paging.limit),
    )


@router.post(
    "",
    response_model=IncomeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record income",
)
async def create_income(
    body: IncomeCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> IncomeRead:
    income = await IncomeService.create_income(db, auth, body)
    return IncomeRead.model_validate(income)


@router.get("/{income_id}", response_model=IncomeRead, summary="Get an income entry")
async def get_income(
    income_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> IncomeRead:
    income = await IncomeService.get_income(db, auth.company_id, income_id)
    return IncomeRead.model_validate(income)


@router.put("/{income_id}", response_model=IncomeRead, summary="Update an income entry")
async def update_income(
    income_id: str,
    body: IncomeUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> IncomeRead:
    income = await IncomeService.update_income(db, auth, income_id, body)
    return IncomeRead.model_validate(income)


@router.delete("/{income_id}", response_model=SuccessResponse, summary="Delete an income entry")
async def delete_income(
    income_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> SuccessResponse:
    await IncomeService.delete_income(db, auth, income_id)
    return SuccessResponse(message="Income deleted successfully")
