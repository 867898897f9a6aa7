"""
models/ledger.py
----------------
Expense / income entries, their categories, financial accounts and the
transactions posted to them.

Account invariant (maintained by services/ledger.py, not by the schema):

    current_balance == initial_balance
                       + sum(credit transactions)
                       - sum(debit transactions)

over the account's non-deleted transactions.
"""

from datetime import date
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from summit.db.base import (
    Base,
    CompanyScoped,
    Money,
    SoftDeleteMixin,
    TimestampMixin,
    UUIDPrimaryKey,
)
from summit.models.invoice import Recurring


class ExpenseStatus(str, PyEnum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class AccountType(str, PyEnum):
    bank = "bank"
    credit_card = "credit_card"
    cash = "cash"


class TransactionType(str, PyEnum):
    debit = "debit"
    credit = "credit"


class ExpenseCategory(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "expense_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)


class IncomeCategory(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "income_categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Expense(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "expenses"

    category_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("expense_categories.id")
    )
    vendor_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("vendors.id"))
    vendor: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="IDR")
    expense_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    receipt_url: Mapped[Optional[str]] = mapped_column(String(1024))
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ExpenseStatus.pending.value
    )
    recurring: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Recurring.none.value
    )
    next_due_date: Mapped[Optional[date]] = mapped_column(Date, index=True)

    category: Mapped[Optional["ExpenseCategory"]] = relationship("ExpenseCategory")


class Income(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "income"

    category_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("income_categories.id")
    )
    client_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("clients.id"))
    invoice_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("invoices.id"))
    source: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="IDR")
    income_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    recurring: Mapped[str] = mapped_column(
        String(20), nullable=False, default=Recurring.none.value
    )
    next_due_date: Mapped[Optional[date]] = mapped_column(Date, index=True)

    category: Mapped[Optional["IncomeCategory"]] = relationship("IncomeCategory")


class Account(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "accounts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="IDR")
    account_number: Mapped[Optional[str]] = mapped_column(String(255))
    initial_balance: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    current_balance: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))

    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction", back_populates="account"
    )


class Transaction(Base, UUIDPrimaryKey, CompanyScoped, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "transactions"

    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="IDR")
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    category_id: Mapped[Optional[str]] = mapped_column(String(36))
    related_invoice_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("invoices.id")
    )
    related_expense_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("expenses.id")
    )
    related_income_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("income.id")
    )
    reconciled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    account: Mapped["Account"] = relationship("Account", back_populates="transactions")
