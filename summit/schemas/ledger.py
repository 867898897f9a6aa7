"""
schemas/ledger.py
-----------------
Categories, expenses, income, accounts and ledger transactions.

Amounts travel as decimals (serialised as strings) so no precision is lost
between the client and the Numeric columns.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from summit.models.invoice import Recurring
from summit.models.ledger import AccountType, ExpenseStatus, TransactionType


# ── Categories ────────────────────────────────────────────────────────────────

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class CategoryRead(BaseModel):
    id: str
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Expenses ──────────────────────────────────────────────────────────────────

class ExpenseCreate(BaseModel):
    category_id: Optional[str] = None
    vendor_id: Optional[str] = None
    vendor: Optional[str] = Field(None, max_length=255, description="Free-text vendor name")
    description: Optional[str] = None
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    expense_date: date
    receipt_url: Optional[str] = Field(None, max_length=1024)
    status: ExpenseStatus = ExpenseStatus.pending
    recurring: Recurring = Recurring.none
    next_due_date: Optional[date] = None

    @model_validator(mode="after")
    def vendor_required(self) -> "ExpenseCreate":
        if not self.vendor_id and not (self.vendor and self.vendor.strip()):
            raise ValueError("Either vendor_id or vendor is required")
        return self


class ExpenseUpdate(ExpenseCreate):
    pass


class ExpenseStatusUpdate(BaseModel):
    status: ExpenseStatus


class ExpenseRead(BaseModel):
    id: str
    category_id: Optional[str] = None
    vendor_id: Optional[str] = None
    vendor: Optional[str] = None
    description: Optional[str] = None
    amount: Decimal
    currency: str
    expense_date: date
    receipt_url: Optional[str] = None
    status: str
    recurring: str
    next_due_date: Optional[date] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Income ────────────────────────────────────────────────────────────────────

class IncomeCreate(BaseModel):
    category_id: Optional[str] = None
    client_id: Optional[str] = None
    invoice_id: Optional[str] = None
    source: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    income_date: date
    recurring: Recurring = Recurring.none
    next_due_date: Optional[date] = None


class IncomeUpdate(IncomeCreate):
    pass


class IncomeRead(BaseModel):
    id: str
    category_id: Optional[str] = None
    client_id: Optional[str] = None
    invoice_id: Optional[str] = None
    source: Optional[str] = None
    description: Optional[str] = None
    amount: Decimal
    currency: str
    income_date: date
    recurring: str
    next_due_date: Optional[date] = None
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Accounts ──────────────────────────────────────────────────────────────────

class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: AccountType
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    account_number: Optional[str] = Field(None, max_length=255)
    initial_balance: Decimal = Field(Decimal("0"), max_digits=14, decimal_places=2)


class AccountUpdate(BaseModel):
    """Balances are derived from transactions and cannot be edited here."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[AccountType] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    account_number: Optional[str] = Field(None, max_length=255)


class AccountRead(BaseModel):
    id: str
    name: str
    type: str
    currency: str
    account_number: Optional[str] = None
    initial_balance: Decimal
    current_balance: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Transactions ──────────────────────────────────────────────────────────────

class TransactionCreate(BaseModel):
    account_id: str
    type: TransactionType
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    transaction_date: date
    category_id: Optional[str] = None
    related_invoice_id: Optional[str] = None
    related_expense_id: Optional[str] = None
    related_income_id: Optional[str] = None
    reconciled: bool = False


class TransactionRead(BaseModel):
    id: str
    account_id: str
    type: str
    description: str
    amount: Decimal
    currency: str
    transaction_date: date
    category_id: Optional[str] = None
    related_invoice_id: Optional[str] = None
    related_expense_id: Optional[str] = None
    related_income_id: Optional[str] = None
    reconciled: bool
    created_at: datetime

    model_config = {"from_attributes": True}
