"""
api/routes/categories.py
------------------------
Expense and income categories. Both resources share one handler set,
bound to a different CategoryService per router.

GET/POST       /api/expense-categories, /api/income-categories
PUT/DELETE     .../{id}
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import require
from summit.schemas.common import SuccessResponse
from summit.schemas.ledger import CategoryCreate, CategoryRead
from summit.services.bookkeeping_service import (
    CategoryService,
    expense_categories,
    income_categories,
)


def build_router(prefix: str, tag: str, service: CategoryService) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("", response_model=List[CategoryRead], summary=f"List {tag.lower()}")
    async def list_categories(
        db: Annotated[AsyncSession, Depends(get_db)],
        auth: Annotated[Authorized, Depends(require(Perm.COMPANY_VIEW))],
    ) -> List[CategoryRead]:
        categories = await service.list_categories(db, auth.company_id)
        return [CategoryRead.model_validate(c) for c in categories]

    @router.post(
        "",
        response_model=CategoryRead,
        status_code=status.HTTP_201_CREATED,
        summary="Create a category",
    )
    async def create_category(
        body: CategoryCreate,
        db: Annotated[AsyncSession, Depends(get_db)],
        auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
    ) -> CategoryRead:
        category = await service.create_category(db, auth, body)
        return CategoryRead.model_validate(category)

    @router.put("/{category_id}", response_model=CategoryRead, summary="Rename a category")
    async def update_category(
        category_id: str,
        body: CategoryCreate,
        db: Annotated[AsyncSession, Depends(get_db)],
        auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
    ) -> CategoryRead:
        category = await service.update_category(db, auth, category_id, body)
        return CategoryRead.model_validate(category)

    @router.delete("/{category_id}", response_model=SuccessResponse, summary="Delete a category")
    async def delete_category(
        category_id: str,
        db: Annotated[AsyncSession, Depends(get_db)],
        auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
    ) -> SuccessResponse:
        await service.delete_category(db, auth, category_id)
        return SuccessResponse(message="Category deleted successfully")

    return router


expense_router = build_router("/expense-categories", "Expense categories", expense_categories)
income_router = build_router("/income-categories", "Income categories", income_categories)
