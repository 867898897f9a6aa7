"""
schemas/invoice.py
------------------
Invoices, line items and payments.

Clients send quantities, unit prices and a tax rate only; every computed
amount (line amount, subtotal, tax, total) is produced server-side.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from summit.models.invoice import InvoiceStatus, PaymentMethod, Recurring


class InvoiceItemIn(BaseModel):
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    unit_price: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)


class InvoiceItemRead(BaseModel):
    id: str
    position: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal

    model_config = {"from_attributes": True}


class InvoiceCreate(BaseModel):
    client_id: str
    invoice_number: str = Field(..., min_length=1, max_length=64)
    status: InvoiceStatus = InvoiceStatus.draft
    issue_date: date
    due_date: date
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    currency: Optional[str] = Field(None, min_length=3, max_length=10)
    notes: Optional[str] = None
    recurring: Recurring = Recurring.none
    next_due_date: Optional[date] = None
    items: List[InvoiceItemIn] = Field(..., min_length=1)

    @model_validator(mode="after")
    def due_after_issue(self):
        if self.due_date < self.issue_date:
            raise ValueError("Due date cannot be before issue date")
        return self


class InvoiceUpdate(InvoiceCreate):
    """Full replacement, including the item set."""
    pass


class InvoiceListRead(BaseModel):
    id: str
    client_id: str
    invoice_number: str
    status: str
    issue_date: date
    due_date: date
    subtotal: Decimal
    tax_rate: Decimal
    tax: Decimal
    total: Decimal
    currency: str
    recurring: str
    next_due_date: Optional[date] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoiceRead(InvoiceListRead):
    notes: Optional[str] = None
    items: List[InvoiceItemRead] = []


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    payment_date: date
    payment_method: PaymentMethod = PaymentMethod.bank_transfer
    account_id: Optional[str] = Field(
        None, description="Account to credit; posts a ledger transaction when given"
    )
    payment_processor_reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class PaymentRead(BaseModel):
    id: str
    invoice_id: str
    client_id: str
    amount: Decimal
    currency: str
    payment_date: date
    payment_method: str
    transaction_id: Optional[str] = None
    payment_processor_reference: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class InvoiceEmailSent(BaseModel):
    message: str = "Email sent successfully"
    to: str
