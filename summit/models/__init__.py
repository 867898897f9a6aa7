"""
models/__init__.py
------------------
Re-export all models so migration tooling and create_tables.py can import
Base and discover all tables via a single import:

    from summit.models import Base
"""

from summit.db.base import Base
from summit.models.access import ApiToken, ClientLoginToken, ClientUser
from summit.models.company import Company
from summit.models.invoice import (
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Recurring,
)
from summit.models.ledger import (
    Account,
    AccountType,
    Expense,
    ExpenseCategory,
    ExpenseStatus,
    Income,
    IncomeCategory,
    Transaction,
    TransactionType,
)
from summit.models.party import Client, Vendor
from summit.models.user import User

__all__ = [
    "Base",
    "Company",
    "User",
    "Client",
    "Vendor",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
    "Recurring",
    "ExpenseCategory",
    "IncomeCategory",
    "Expense",
    "ExpenseStatus",
    "Income",
    "Account",
    "AccountType",
    "Transaction",
    "TransactionType",
    "ApiToken",
    "ClientUser",
    "ClientLoginToken",
]
