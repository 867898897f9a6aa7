"""
api/routes/expenses.py
----------------------
GET    /api/expenses              — Paginated; ?status, ?category_id, ?start_date, ?end_date.
POST   /api/expenses              — Create (vendor_id or free-text vendor required).
GET    /api/expenses/{id}
PUT    /api/expenses/{id}
PUT    /api/expenses/{id}/status  — pending / approved / rejected.
DELETE /api/expenses/{id}
"""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import Pagination, get_pagination, require
from summit.models.ledger import ExpenseStatus
from summit.schemas.common import Page, PageMeta, SuccessResponse
from summit.schemas.ledger import ExpenseCreate, ExpenseRead, ExpenseStatusUpdate, ExpenseUpdate
from summit.services.bookkeeping_service import ExpenseService

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("", response_model=Page[ExpenseRead], summary="List expenses")
async def list_expenses(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
    paging: Annotated[Pagination, Depends(get_pagination)],
    status_filter: Annotated[Optional[ExpenseStatus], Query(alias="status")] = None,
    category_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Page[ExpenseRead]:
    expenses, total = await ExpenseService.list_expenses(
        db,
        auth.company_id,
        paging.page,
        paging.limit,
        status=status_filter.value if status_filter else None,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
    )
    return Page[ExpenseRead](
        data=[ExpenseRead.model_validate(e) for e in expenses],
        meta=PageMeta.build(total, paging.page, paging.limit),
    )


@router.post(
    "",
    response_model=ExpenseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an expense",
)
async def create_expense(
    body: ExpenseCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> ExpenseRead:
    expense = await ExpenseService.create_expense(db, auth, body)
    return ExpenseRead.model_validate(expense)


@router.get("/{expense_id}", response_model=ExpenseRead, summary="Get an expense")
async def get_expense(
    expense_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> ExpenseRead:
    expense = await ExpenseService.get_expense(db, auth.company_id, expense_id)
    return ExpenseRead.model_validate(expense)


@router.put("/{expense_id}", response_model=ExpenseRead, summary="Update an expense")
async def update_expense(
    expense_id: str,
    body: ExpenseUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> ExpenseRead:
    expense = await ExpenseService.update_expense(db, auth, expense_id, body)
    return ExpenseRead.model_validate(expense)


@router.put("/{expense_id}/status", response_model=ExpenseRead, summary="Change expense status")
async def update_expense_status(
    expense_id: str,
    body: ExpenseStatusUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> ExpenseRead:
    expense = await ExpenseService.set_status(db, auth, expense_id, body)
    return ExpenseRead.model_validate(expense)


@router.delete("/{expense_id}", response_model=SuccessResponse, summary="Delete an expense")
async def delete_expense(
    expense_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> SuccessResponse:
    await ExpenseService.delete_expense(db, auth, expense_id)
    return SuccessResponse(message="Expense deleted successfully")
