"""
services/invoice_service.py
---------------------------
Invoice lifecycle.

Amounts are computed here and nowhere else:

    line amount = quantity * unit_price
    subtotal    = sum(line amounts)
    tax         = subtotal * tax_rate / 100
    total       = subtotal + tax

each rounded half-up to 2 decimals. Updates replace the whole item set.
Moving an invoice to `paid` needs invoices.markAsPaid, to `cancelled`
needs invoices.void; a paid invoice is frozen. An edit may not bring the
total below the completed payments, and an edit that makes the total equal
to them settles the invoice.
"""

from decimal import ROUND_HALF_UP, Decimal
from html import escape
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from starlette.concurrency import run_in_threadpool

from summit.core.errors import Conflict, Unauthorized, ValidationFailed
from summit.core.guard import Authorized
from summit.core.logging import get_logger
from summit.core.permissions import Perm, can
from summit.db.base import utcnow
from summit.models.invoice import OPEN_INVOICE_STATUSES, Invoice, InvoiceItem, InvoiceStatus
from summit.models.party import Client
from summit.repositories.invoice import InvoiceRepository, PaymentRepository
from summit.repositories.party import ClientRepository
from summit.schemas.invoice import InvoiceCreate, InvoiceItemIn, InvoiceUpdate
from summit.services.bookkeeping_service import ensure_reference
from summit.services.company_service import CompanyService
from summit.services.mail_service import Mailer
from summit.services.pdf_service import render_invoice_pdf
from summit.services.recurring_service import initial_next_due_date, next_due_date_on_update

logger = get_logger(__name__)

CENT = Decimal("0.01")


def _round(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(
    items: Sequence[InvoiceItemIn], tax_rate: Decimal
) -> Tuple[List[InvoiceItem], Decimal, Decimal, Decimal]:
    lines = []
    subtotal = Decimal("0.00")
    for position, item in enumerate(items):
        amount = _round(item.quantity * item.unit_price)
        subtotal += amount
        lines.append(
            InvoiceItem(
                position=position,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=amount,
            )
        )
    tax = _round(subtotal * tax_rate / Decimal("100"))
    return lines, subtotal, tax, subtotal + tax


def _check_status_permission(auth: Authorized, old: Optional[str], new: str) -> None:
    if new == old:
        return
    if new == InvoiceStatus.paid.value and not can(auth.identity, Perm.INVOICES_MARK_PAID):
        raise Unauthorized("Missing permission: invoices.markAsPaid")
    if new == InvoiceStatus.cancelled.value and not can(auth.identity, Perm.INVOICES_VOID):
        raise Unauthorized("Missing permission: invoices.void")


class InvoiceService:

    @staticmethod
    async def list_invoices(
        db: AsyncSession,
        company_id: str,
        page: int,
        limit: int,
        status: Optional[str] = None,
        client_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Invoice], int]:
        filters = []
        if status and status != "all":
            filters.append(Invoice.status == status)
        if client_id:
            filters.append(Invoice.client_id == client_id)
        if search:
            pattern = f"%{search.lower()}%"
            client_match = Invoice.client.has(func.lower(Client.name).like(pattern))
            filters.append(or_(func.lower(Invoice.invoice_number).like(pattern), client_match))
        repo = InvoiceRepository(db)
        total = await repo.count(company_id, *filters)
        rows = await repo.list(
            company_id,
            *filters,
            order_by=(Invoice.issue_date.desc(), Invoice.created_at.desc()),
            limit=limit,
            offset=(page - 1) * limit,
        )
        return rows, total

    @staticmethod
    async def get_invoice(db: AsyncSession, company_id: str, invoice_id: str) -> Invoice:
        return await InvoiceRepository(db).get_with_items(company_id, invoice_id)

    @staticmethod
    async def create_invoice(db: AsyncSession, auth: Authorized, data: InvoiceCreate) -> Invoice:
        repo = InvoiceRepository(db)
        await ensure_reference(db, ClientRepository, auth.company_id, "client_id", data.client_id)
        if await repo.number_taken(auth.company_id, data.invoice_number):
            raise Conflict(repo.conflict_message)
        _check_status_permission(auth, None, data.status.value)

        items, subtotal, tax, total = compute_totals(data.items, data.tax_rate)
        invoice = Invoice(
            company_id=auth.company_id,
            client_id=data.client_id,
            invoice_number=data.invoice_number,
            status=data.status.value,
            issue_date=data.issue_date,
            due_date=data.due_date,
            subtotal=subtotal,
            tax_rate=data.tax_rate,
            tax=tax,
            total=total,
            currency=data.currency
            or await CompanyService.default_currency(db, auth.company_id),
            notes=data.notes,
            recurring=data.recurring.value,
            next_due_date=initial_next_due_date(
                data.recurring.value, data.issue_date, data.next_due_date
            ),
            paid_at=utcnow() if data.status == InvoiceStatus.paid else None,
            created_by_id=auth.user_id,
        )
        invoice.items = items
        db.add(invoice)
        await repo.flush()
        logger.info(
            "Invoice created",
            company_id=auth.company_id,
            invoice_id=invoice.id,
            total=str(total),
        )
        return invoice

    @staticmethod
    async def update_invoice(
        db: AsyncSession, auth: Authorized, invoice_id: str, data: InvoiceUpdate
    ) -> Invoice:
        repo = InvoiceRepository(db)
        # locked so a concurrent payment cannot slip in between check and write
        invoice = await repo.get_with_items(auth.company_id, invoice_id, for_update=True)
        if invoice.status == InvoiceStatus.paid.value:
            raise Conflict("Paid invoices cannot be edited")
        await ensure_reference(db, ClientRepository, auth.company_id, "client_id", data.client_id)
        if await repo.number_taken(auth.company_id, data.invoice_number, exclude_id=invoice.id):
            raise Conflict(repo.conflict_message)
        _check_status_permission(auth, invoice.status, data.status.value)

        items, subtotal, tax, total = compute_totals(data.items, data.tax_rate)
        paid = await PaymentRepository(db).paid_amount(auth.company_id, invoice.id)
        if total < paid:
            raise Conflict(f"Invoice total cannot be less than the {paid} already paid")

        invoice.client_id = data.client_id
        invoice.invoice_number = data.invoice_number
        invoice.status = data.status.value
        invoice.issue_date = data.issue_date
        invoice.due_date = data.due_date
        invoice.tax_rate = data.tax_rate
        invoice.subtotal = subtotal
        invoice.tax = tax
        invoice.total = total
        if data.currency:
            invoice.currency = data.currency
        invoice.notes = data.notes
        invoice.next_due_date = next_due_date_on_update(
            invoice, data.recurring.value, data.issue_date, data.next_due_date
        )
        invoice.recurring = data.recurring.value
        if paid > 0 and paid == total and invoice.status in OPEN_INVOICE_STATUSES:
            # the edit brought the total down to what has been paid
            invoice.status = InvoiceStatus.paid.value
        if invoice.status == InvoiceStatus.paid.value:
            invoice.paid_at = utcnow()
        invoice.items = items
        await repo.flush()
        logger.info("Invoice updated", company_id=auth.company_id, invoice_id=invoice.id)
        return invoice

    @staticmethod
    async def delete_invoice(db: AsyncSession, auth: Authorized, invoice_id: str) -> None:
        await InvoiceRepository(db).soft_delete(auth.company_id, invoice_id)
        logger.info("Invoice deleted", company_id=auth.company_id, invoice_id=invoice_id)

    @staticmethod
    async def get_for_pdf(db: AsyncSession, company_id: str, invoice_id: str) -> Invoice:
        return await InvoiceRepository(db).get(
            company_id,
            invoice_id,
            options=(selectinload(Invoice.items), selectinload(Invoice.client)),
        )

    @staticmethod
    async def send_email(
        db: AsyncSession, auth: Authorized, mailer: Mailer, invoice_id: str
    ) -> str:
        """
        Email the invoice PDF to the client. A draft becomes sent once the
        mail is out. Returns the recipient address.
        """
        invoice = await InvoiceService.get_for_pdf(db, auth.company_id, invoice_id)
        if invoice.status == InvoiceStatus.cancelled.value:
            raise Conflict("Cancelled invoices cannot be sent")
        recipient = invoice.client.email
        if not recipient:
            raise ValidationFailed("Client does not have an email address")

        company = await CompanyService.get_current(db, auth.company_id)
        pdf = await run_in_threadpool(
            render_invoice_pdf, company, invoice.client, invoice, list(invoice.items)
        )
        text, html = _invoice_email_body(company.name, invoice)
        await mailer.send_async(
            recipient,
            f"Invoice {invoice.invoice_number} from {company.name}",
            text,
            html,
            attachments=[(f"invoice-{invoice.invoice_number}.pdf", pdf)],
        )

        if invoice.status == InvoiceStatus.draft.value:
            invoice.status = InvoiceStatus.sent.value
            await db.flush()
        logger.info(
            "Invoice emailed",
            company_id=auth.company_id,
            invoice_id=invoice.id,
            invoice_status=invoice.status,
        )
        return recipient


def _invoice_email_body(company_name: str, invoice: Invoice) -> Tuple[str, str]:
    name = invoice.client.name
    amount = f"{invoice.currency} {invoice.total}"
    due = invoice.due_date.isoformat()
    text = (
        f"Dear {name},\n\n"
        f"Please find attached invoice {invoice.invoice_number} for {amount}, "
        f"due on {due}.\n\n"
        f"Thank you for your business.\n{company_name}\n"
    )
    html = (
        f"<p>Dear {escape(name)},</p>"
        f"<p>Please find attached invoice <strong>{escape(invoice.invoice_number)}</strong> "
        f"for {escape(amount)}, due on {due}.</p>"
        f"<p>Thank you for your business.<br>{escape(company_name)}</p>"
    )
    return text, html
