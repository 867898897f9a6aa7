"""
repositories/ledger.py
----------------------
Categories, expenses, income, accounts and ledger transactions.
"""

from decimal import Decimal

from sqlalchemy import update

from summit.core.errors import NotFound
from summit.models.ledger import (
    Account,
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
    Transaction,
)
from summit.repositories.base import CompanyScopedRepository


class ExpenseCategoryRepository(CompanyScopedRepository[ExpenseCategory]):
    model = ExpenseCategory
    not_found_message = "Expense category not found"


class IncomeCategoryRepository(CompanyScopedRepository[IncomeCategory]):
    model = IncomeCategory
    not_found_message = "Income category not found"


class ExpenseRepository(CompanyScopedRepository[Expense]):
    model = Expense
    not_found_message = "Expense not found"


class IncomeRepository(CompanyScopedRepository[Income]):
    model = Income
    not_found_message = "Income not found"


class AccountRepository(CompanyScopedRepository[Account]):
    model = Account
    not_found_message = "Account not found"

    async def adjust_balance(self, company_id: str, account_id: str, delta: Decimal) -> None:
        """
        Relative balance update in SQL.

        `current_balance = current_balance + delta` is evaluated by the
        database, so two concurrent postings cannot overwrite each other.
        """
        result = await self.db.execute(
            update(Account)
            .where(Account.id == account_id, *self.scope(company_id))
            .values(current_balance=Account.current_balance + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFound(self.not_found_message)


class TransactionRepository(CompanyScopedRepository[Transaction]):
    model = Transaction
    not_found_message = "Transaction not found"
