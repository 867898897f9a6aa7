"""
api/routes/invoices.py
----------------------
GET    /api/invoices                 — Paginated; ?status, ?client_id, ?search.
POST   /api/invoices                 — Create with items; totals computed server-side.
GET    /api/invoices/{id}            — Invoice with items.
PUT    /api/invoices/{id}            — Replace fields and items; 409 once paid.
DELETE /api/invoices/{id}            — Soft delete.
GET    /api/invoices/{id}/pdf        — Rendered PDF.
POST   /api/invoices/{id}/send-email — Email the PDF to the client; a draft becomes sent.
GET    /api/invoices/{id}/payments   — Payments recorded against it.
POST   /api/invoices/{id}/payments   — Record a payment (finance.recordPayments).
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import Pagination, get_mailer, get_pagination, require
from summit.schemas.common import Page, PageMeta, SuccessResponse
from summit.schemas.invoice import (
    InvoiceCreate,
    InvoiceEmailSent,
    InvoiceListRead,
    InvoiceRead,
    InvoiceUpdate,
    PaymentCreate,
    PaymentRead,
)
from summit.services.company_service import CompanyService
from summit.services.invoice_service import InvoiceService
from summit.services.mail_service import Mailer
from summit.services.ledger_service import PaymentService
from summit.services.pdf_service import render_invoice_pdf

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("", response_model=Page[InvoiceListRead], summary="List invoices")
async def list_invoices(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.INVOICES_VIEW))],
    paging: Annotated[Pagination, Depends(get_pagination)],
    status_filter: Annotated[Optional[str], Query(alias="status")] = None,
    client_id: Optional[str] = None,
    search: Optional[str] = None,
) -> Page[InvoiceListRead]:
    invoices, total = await InvoiceService.list_invoices(
        db,
        auth.company_id,
        paging.page,
        paging.limit,
        status=status_filter,
        client_id=client_id,
        search=search,
    )
    return Page[InvoiceListRead](
        data=[InvoiceListRead.model_validate(i) for i in invoices],
        meta=PageMeta.build(total, paging.page, paging.limit),
    )


@router.post(
    "",
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an invoice",
)
async def create_invoice(
    body: InvoiceCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.INVOICES_CREATE))],
) -> InvoiceRead:
    invoice = await InvoiceService.create_invoice(db, auth, body)
    return InvoiceRead.model_validate(invoice)


@router.get("/{invoice_id}", response_model=InvoiceRead, summary="Get an invoice")
async def get_invoice(
    invoice_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.INVOICES_VIEW))],
) -> InvoiceRead:
    invoice = await InvoiceService.get_invoice(db, auth.company_id, invoice_id)
    return InvoiceRead.model_validate(invoice)


@router.put("/{invoice_id}", response_model=InvoiceRead, summary="Update an invoice")
async def update_invoice(
    invoice_id: str,
    body: InvoiceUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.INVOICES_EDIT))],
) -> InvoiceRead:
    invoice = await InvoiceService.update_invoice(db, auth, invoice_id, body)
    return InvoiceRead.model_validate(invoice)


@router.delete("/{invoice_id}", response_model=SuccessResponse, summary="Delete an invoice")
async def delete_invoice(
    invoice_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.INVOICES_DELETE))],
) -> SuccessResponse:
    await InvoiceService.delete_invoice(db, auth, invoice_id)
    return SuccessResponse(message="Invoice deleted successfully")


@router.get(
    "/{invoice_id}/pdf",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
    summary="Download the invoice as PDF",
)
async def get_invoice_pdf(
    invoice_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.INVOICES_VIEW))],
) -> Response:
    invoice = await InvoiceService.get_for_pdf(db, auth.company_id, invoice_id)
    company = await CompanyService.get_current(db, auth.company_id)
    pdf = await run_in_threadpool(
        render_invoice_pdf, company, invoice.client, invoice, list(invoice.items)
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'inline; filename="invoice-{invoice.invoice_number}.pdf"'
        },
    )


@router.post(
    "/{invoice_id}/send-email",
    response_model=InvoiceEmailSent,
    summary="Email the invoice PDF to the client",
)
async def send_invoice_email(
    invoice_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.INVOICES_EDIT))],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> InvoiceEmailSent:
    recipient = await InvoiceService.send_email(db, auth, mailer, invoice_id)
    return InvoiceEmailSent(to=recipient)


@router.get(
    "/{invoice_id}/payments",
    response_model=List[PaymentRead],
    summary="List payments of an invoice",
)
async def list_payments(
    invoice_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.INVOICES_VIEW))],
) -> List[PaymentRead]:
    payments = await PaymentService.list_payments(db, auth.company_id, invoice_id)
    return [PaymentRead.model_validate(p) for p in payments]


@router.post(
    "/{invoice_id}/payments",
    response_model=PaymentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record a payment",
)
async def record_payment(
    invoice_id: str,
    body: PaymentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_RECORD_PAYMENTS))],
) -> PaymentRead:
    payment = await PaymentService.record_payment(db, auth, invoice_id, body)
    return PaymentRead.model_validate(payment)
