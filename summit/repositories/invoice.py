"""
repositories/invoice.py
-----------------------
Invoices, line items and payments.

Items are always loaded eagerly (selectinload): the async session cannot
lazy-load a collection when a response schema touches it.
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from summit.db.base import to_money
from summit.models.invoice import Invoice, Payment, PaymentStatus
from summit.repositories.base import CompanyScopedRepository


class InvoiceRepository(CompanyScopedRepository[Invoice]):
    model = Invoice
    not_found_message = "Invoice not found"
    conflict_message = "Invoice number already exists"

    async def get_with_items(self, company_id: str, id: str, for_update: bool = False) -> Invoice:
        return await self.get(
            company_id, id, options=(selectinload(Invoice.items),), for_update=for_update
        )

    async def number_taken(
        self, company_id: str, invoice_number: str, exclude_id: Optional[str] = None
    ) -> bool:
        # soft-deleted invoices keep their number
        stmt = select(Invoice.id).where(
            *self.scope(company_id, include_deleted=True),
            Invoice.invoice_number == invoice_number,
        )
        if exclude_id is not None:
            stmt = stmt.where(Invoice.id != exclude_id)
        return (await self.db.execute(stmt.limit(1))).first() is not None

    async def list_for_client(self, company_id: str, client_id: str, *filters) -> List[Invoice]:
        return await self.list(
            company_id,
            Invoice.client_id == client_id,
            *filters,
            order_by=(Invoice.issue_date.desc(), Invoice.invoice_number.desc()),
        )


class PaymentRepository(CompanyScopedRepository[Payment]):
    model = Payment
    not_found_message = "Payment not found"

    async def list_for_invoice(self, company_id: str, invoice_id: str) -> List[Payment]:
        return await self.list(
            company_id,
            Payment.invoice_id == invoice_id,
            order_by=(Payment.payment_date, Payment.created_at),
        )

    async def paid_amounts(
        self, company_id: str, invoice_ids: Iterable[str]
    ) -> Dict[str, Decimal]:
        """Sum of completed payments per invoice id."""
        ids = list(invoice_ids)
        if not ids:
            return {}
        stmt = (
            select(Payment.invoice_id, func.sum(Payment.amount))
            .where(
                *self.scope(company_id),
                Payment.invoice_id.in_(ids),
                Payment.status == PaymentStatus.completed.value,
            )
            .group_by(Payment.invoice_id)
        )
        rows = (await self.db.execute(stmt)).all()
        paid = {invoice_id: to_money(total) for invoice_id, total in rows}
        return {invoice_id: paid.get(invoice_id, to_money(0)) for invoice_id in ids}

    async def paid_amount(self, company_id: str, invoice_id: str) -> Decimal:
        return (await self.paid_amounts(company_id, [invoice_id]))[invoice_id]

    async def linked_to_transaction(self, company_id: str, transaction_id: str) -> bool:
        stmt = select(Payment.id).where(
            *self.scope(company_id), Payment.transaction_id == transaction_id
        )
        return (await self.db.execute(stmt.limit(1))).first() is not None
