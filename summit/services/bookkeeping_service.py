"""
services/bookkeeping_service.py
-------------------------------
Expense and income categories, expenses, and income entries.

Every id a request body refers to (category, vendor, client, invoice) is
resolved through a company-scoped repository first; an id from another
company is rejected exactly like an unknown one.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.errors import NotFound, ValidationFailed
from summit.core.guard import Authorized
from summit.core.logging import get_logger
from summit.models.ledger import Expense, Income
from summit.repositories.base import CompanyScopedRepository
from summit.repositories.invoice import InvoiceRepository
from summit.repositories.ledger import (
    ExpenseCategoryRepository,
    ExpenseRepository,
    IncomeCategoryRepository,
    IncomeRepository,
)
from summit.repositories.party import ClientRepository, VendorRepository
from summit.schemas.ledger import (
    CategoryCreate,
    ExpenseCreate,
    ExpenseStatusUpdate,
    IncomeCreate,
)
from summit.services.company_service import CompanyService
from summit.services.recurring_service import initial_next_due_date, next_due_date_on_update

logger = get_logger(__name__)


async def ensure_reference(
    db: AsyncSession,
    repo_cls: Type[CompanyScopedRepository],
    company_id: str,
    field: str,
    value: Optional[str],
) -> None:
    """400 with a field error when `value` is not a live row of this company."""
    if value is None:
        return
    try:
        await repo_cls(db).get(company_id, value)
    except NotFound:
        raise ValidationFailed.for_field(field, repo_cls.not_found_message) from None


async def _with_currency(db: AsyncSession, company_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
    if not values.get("currency"):
        values["currency"] = await CompanyService.default_currency(db, company_id)
    return values


# ── Categories ────────────────────────────────────────────────────────────────

class CategoryService:
    """Shared by expense and income categories; the repository picks the table."""

    def __init__(self, repo_cls: Type[CompanyScopedRepository]) -> None:
        self.repo_cls = repo_cls

    async def list_categories(self, db: AsyncSession, company_id: str):
        repo = self.repo_cls(db)
        return await repo.list(company_id, order_by=(repo.model.name,))

    async def create_category(self, db: AsyncSession, auth: Authorized, data: CategoryCreate):
        category = await self.repo_cls(db).create(auth.company_id, name=data.name.strip())
        logger.info(
            "Category created",
            table=self.repo_cls.model.__tablename__,
            company_id=auth.company_id,
            category_id=category.id,
        )
        return category

    async def update_category(
        self, db: AsyncSession, auth: Authorized, category_id: str, data: CategoryCreate
    ):
        return await self.repo_cls(db).update(
            auth.company_id, category_id, name=data.name.strip()
        )

    async def delete_category(self, db: AsyncSession, auth: Authorized, category_id: str) -> None:
        await self.repo_cls(db).soft_delete(auth.company_id, category_id)


expense_categories = CategoryService(ExpenseCategoryRepository)
income_categories = CategoryService(IncomeCategoryRepository)


# ── Expenses ──────────────────────────────────────────────────────────────────

class ExpenseService:

    @staticmethod
    async def list_expenses(
        db: AsyncSession,
        company_id: str,
        page: int,
        limit: int,
        status: Optional[str] = None,
        category_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[Expense], int]:
        filters = []
        if status:
            filters.append(Expense.status == status)
        if category_id:
            filters.append(Expense.category_id == category_id)
        if start_date:
            filters.append(Expense.expense_date >= start_date)
        if end_date:
            filters.append(Expense.expense_date <= end_date)
        repo = ExpenseRepository(db)
        total = await repo.count(company_id, *filters)
        rows = await repo.list(
            company_id,
            *filters,
            order_by=(Expense.expense_date.desc(), Expense.created_at.desc()),
            limit=limit,
            offset=(page - 1) * limit,
        )
        return rows, total

    @staticmethod
    async def get_expense(db: AsyncSession, company_id: str, expense_id: str) -> Expense:
        return await ExpenseRepository(db).get(company_id, expense_id)

    @staticmethod
    async def _values(
        db: AsyncSession, company_id: str, data: ExpenseCreate, current: Optional[Expense] = None
    ) -> Dict[str, Any]:
        await ensure_reference(db, ExpenseCategoryRepository, company_id, "category_id", data.category_id)
        await ensure_reference(db, VendorRepository, company_id, "vendor_id", data.vendor_id)
        values = data.model_dump()
        values["status"] = data.status.value
        values["recurring"] = data.recurring.value
        if current is None:
            values["next_due_date"] = initial_next_due_date(
                data.recurring.value, data.expense_date, data.next_due_date
            )
        else:
            values["next_due_date"] = next_due_date_on_update(
                current, data.recurring.value, data.expense_date, data.next_due_date
            )
        return await _with_currency(db, company_id, values)

    @staticmethod
    async def create_expense(db: AsyncSession, auth: Authorized, data: ExpenseCreate) -> Expense:
        values = await ExpenseService._values(db, auth.company_id, data)
        expense = await ExpenseRepository(db).create(auth.company_id, **values)
        logger.info("Expense created", company_id=auth.company_id, expense_id=expense.id)
        return expense

    @staticmethod
    async def update_expense(
        db: AsyncSession, auth: Authorized, expense_id: str, data: ExpenseCreate
    ) -> Expense:
        repo = ExpenseRepository(db)
        current = await repo.get(auth.company_id, expense_id)
        values = await ExpenseService._values(db, auth.company_id, data, current)
        return await repo.update(auth.company_id, expense_id, **values)

    @staticmethod
    async def set_status(
        db: AsyncSession, auth: Authorized, expense_id: str, data: ExpenseStatusUpdate
    ) -> Expense:
        expense = await ExpenseRepository(db).update(
            auth.company_id, expense_id, status=data.status.value
        )
        logger.info(
            "Expense status changed",
            company_id=auth.company_id,
            expense_id=expense_id,
            status=expense.status,
        )
        return expense

    @staticmethod
    async def delete_expense(db: AsyncSession, auth: Authorized, expense_id: str) -> None:
        await ExpenseRepository(db).soft_delete(auth.company_id, expense_id)
        logger.info("Expense deleted", company_id=auth.company_id, expense_id=expense_id)


# ── Income ────────────────────────────────────────────────────────────────────

class IncomeService:

    @staticmethod
    async def list_income(
        db: AsyncSession,
        company_id: str,
        page: int,
        limit: int,
        category_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[Income], int]:
        filters = []
        if category_id:
            filters.append(Income.category_id == category_id)
        if start_date:
            filters.append(Income.income_date >= start_date)
        if end_date:
            filters.append(Income.income_date <= end_date)
        repo = IncomeRepository(db)
        total = await repo.count(company_id, *filters)
        rows = await repo.list(
            company_id,
            *filters,
            order_by=(Income.income_date.desc(), Income.created_at.desc()),
            limit=limit,
            offset=(page - 1) * limit,
        )
        return rows, total

    @staticmethod
    async def get_income(db: AsyncSession, company_id: str, income_id: str) -> Income:
        return await IncomeRepository(db).get(company_id, income_id)

    @staticmethod
    async def _values(
        db: AsyncSession, company_id: str, data: IncomeCreate, current: Optional[Income] = None
    ) -> Dict[str, Any]:
        await ensure_reference(db, IncomeCategoryRepository, company_id, "category_id", data.category_id)
        await ensure_reference(db, ClientRepository, company_id, "client_id", data.client_id)
        await ensure_reference(db, InvoiceRepository, company_id, "invoice_id", data.invoice_id)
        values = data.model_dump()
        values["recurring"] = data.recurring.value
        if current is None:
            values["next_due_date"] = initial_next_due_date(
                data.recurring.value, data.income_date, data.next_due_date
            )
        else:
            values["next_due_date"] = next_due_date_on_update(
                current, data.recurring.value, data.income_date, data.next_due_date
            )
        return await _with_currency(db, company_id, values)

    @staticmethod
    async def create_income(db: AsyncSession, auth: Authorized, data: IncomeCreate) -> Income:
        values = await IncomeService._values(db, auth.company_id, data)
        income = await IncomeRepository(db).create(auth.company_id, **values)
        logger.info("Income created", company_id=auth.company_id, income_id=income.id)
        return income

    @staticmethod
    async def update_income(
        db: AsyncSession, auth: Authorized, income_id: str, data: IncomeCreate
    ) -> Income:
        repo = IncomeRepository(db)
        current = await repo.get(auth.company_id, income_id)
        values = await IncomeService._values(db, auth.company_id, data, current)
        return await repo.update(auth.company_id, income_id, **values)

    @staticmethod
    async def delete_income(db: AsyncSession, auth: Authorized, income_id: str) -> None:
        await IncomeRepository(db).soft_delete(auth.company_id, income_id)
        logger.info("Income deleted", company_id=auth.company_id, income_id=income_id)
