"""
services/pdf_service.py
-----------------------
Invoice PDF rendering with reportlab platypus.

Text coming from users (names, addresses, item descriptions) is escaped
before it goes into a Paragraph, which otherwise parses it as markup.
"""

from decimal import Decimal
from io import BytesIO
from typing import Iterable, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from summit.models.company import Company
from summit.models.invoice import Invoice, InvoiceItem
from summit.models.party import Client


def _text(value: Optional[str]) -> str:
    return escape(value or "").replace("\n", "<br/>")


def _money(value: Decimal, currency: str) -> str:
    return f"{currency} {value:,.2f}"


def _lines(*values: Optional[str]) -> str:
    return "<br/>".join(_text(v) for v in values if v)


def render_invoice_pdf(
    company: Company,
    client: Client,
    invoice: Invoice,
    items: Iterable[InvoiceItem],
) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=f"Invoice {invoice.invoice_number}",
        author=company.name,
    )
    styles = getSampleStyleSheet()
    right = ParagraphStyle("RightAligned", parent=styles["Normal"], alignment=TA_RIGHT)

    elements = []

    # ── Header ───────────────────────────────────────────────────────────
    header = Table(
        [[
            Paragraph(
                f"<b>{_text(company.name)}</b><br/>"
                + _lines(company.address, company.email, company.phone, company.website),
                styles["Normal"],
            ),
            Paragraph(f"<b>INVOICE</b><br/>#{_text(invoice.invoice_number)}", right),
        ]],
        colWidths=[doc.width * 0.6, doc.width * 0.4],
    )
    header.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    elements.append(header)
    elements.append(Spacer(1, 20))

    # ── Bill-to and invoice meta ─────────────────────────────────────────
    meta = (
        f"<b>Issue date:</b> {invoice.issue_date:%Y-%m-%d}<br/>"
        f"<b>Due date:</b> {invoice.due_date:%Y-%m-%d}<br/>"
        f"<b>Status:</b> {_text(invoice.status.upper())}"
    )
    if company.tax_number:
        meta += f"<br/><b>Tax number:</b> {_text(company.tax_number)}"
    bill_to = Table(
        [[
            Paragraph(
                "<b>BILL TO:</b><br/>" + _lines(client.name, client.address, client.email, client.phone),
                styles["Normal"],
            ),
            Paragraph(meta, right),
        ]],
        colWidths=[doc.width / 2.0] * 2,
    )
    bill_to.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    elements.append(bill_to)
    elements.append(Spacer(1, 20))

    # ── Items ────────────────────────────────────────────────────────────
    rows = [["Description", "Qty", "Unit price", "Amount"]]
    for item in items:
        rows.append([
            Paragraph(_text(item.description), styles["Normal"]),
            f"{item.quantity:,.2f}",
            _money(item.unit_price, invoice.currency),
            _money(item.amount, invoice.currency),
        ])
    rows.append(["", "", "Subtotal", _money(invoice.subtotal, invoice.currency)])
    rows.append(["", "", f"Tax ({invoice.tax_rate:.2f}%)", _money(invoice.tax, invoice.currency)])
    rows.append(["", "", "Total", _money(invoice.total, invoice.currency)])

    table = Table(
        rows,
        colWidths=[doc.width * 0.46, doc.width * 0.12, doc.width * 0.21, doc.width * 0.21],
        repeatRows=1,
    )
    item_count = len(rows) - 4
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("GRID", (0, 0), (-1, item_count), 0.5, colors.grey),
        ("LINEABOVE", (2, -1), (-1, -1), 1, colors.black),
        ("FONTNAME", (2, -1), (-1, -1), "Helvetica-Bold"),
    ]))
    elements.append(table)

    if invoice.notes:
        elements.append(Spacer(1, 20))
        elements.append(Paragraph(f"<b>Notes</b><br/>{_text(invoice.notes)}", styles["Normal"]))
    if company.bank_account:
        elements.append(Spacer(1, 12))
        elements.append(
            Paragraph(f"<b>Payment to:</b> {_text(company.bank_account)}", styles["Normal"])
        )

    doc.build(elements)
    return buffer.getvalue()
