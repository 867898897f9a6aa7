"""
Invoice amounts, lifecycle rules, listing and PDF rendering.
"""

from decimal import Decimal

import pytest

from summit.schemas.invoice import InvoiceItemIn
from summit.services.invoice_service import compute_totals


def item(quantity, unit_price):
    return InvoiceItemIn(description="Line", quantity=quantity, unit_price=unit_price)


class TestComputeTotals:
    def test_lines_subtotal_tax_total(self):
        lines, subtotal, tax, total = compute_totals(
            [item("2", "50.00"), item("1.5", "10.00")], Decimal("10")
        )
        assert [line.amount for line in lines] == [Decimal("100.00"), Decimal("15.00")]
        assert [line.position for line in lines] == [0, 1]
        assert subtotal == Decimal("115.00")
        assert tax == Decimal("11.50")
        assert total == Decimal("126.50")

    def test_rounds_half_up(self):
        _, subtotal, tax, total = compute_totals([item("1", "0.05")], Decimal("50"))
        assert subtotal == Decimal("0.05")
        assert tax == Decimal("0.03")
        assert total == Decimal("0.08")

    def test_zero_tax(self):
        _, subtotal, tax, total = compute_totals([item("3", "3.33")], Decimal("0"))
        assert subtotal == total == Decimal("9.99")
        assert tax == Decimal("0.00")


class TestInvoiceApi:
    async def test_create_computes_amounts_server_side(self, client, admin, factory):
        customer = await factory.client_record(admin)
        invoice = await factory.invoice(
            admin,
            customer["id"],
            tax_rate="20",
            items=[
                {"description": "Design", "quantity": "3", "unit_price": "100.00"},
                {"description": "Hosting", "quantity": "1", "unit_price": "19.99"},
            ],
        )
        assert Decimal(invoice["subtotal"]) == Decimal("319.99")
        assert Decimal(invoice["tax"]) == Decimal("64.00")
        assert Decimal(invoice["total"]) == Decimal("383.99")
        assert invoice["status"] == "draft"
        assert invoice["currency"] == "IDR"
        assert [i["description"] for i in invoice["items"]] == ["Design", "Hosting"]

    async def test_duplicate_number_conflicts(self, client, admin, factory):
        customer = await factory.client_record(admin)
        await factory.invoice(admin, customer["id"], number="INV-100")
        resp = await client.post(
            "/api/invoices",
            json={
                "client_id": customer["id"],
                "invoice_number": "INV-100",
                "issue_date": "2026-02-01",
                "due_date": "2026-02-28",
                "items": [{"description": "x", "quantity": "1", "unit_price": "1"}],
            },
            headers=admin,
        )
        assert resp.status_code == 409

    async def test_due_before_issue_rejected(self, client, admin, factory):
        customer = await factory.client_record(admin)
        resp = await client.post(
            "/api/invoices",
            json={
                "client_id": customer["id"],
                "invoice_number": "INV-1",
                "issue_date": "2026-02-10",
                "due_date": "2026-02-01",
                "items": [{"description": "x", "quantity": "1", "unit_price": "1"}],
            },
            headers=admin,
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Validation failed"

    async def test_unknown_client_is_a_field_error(self, client, admin):
        resp = await client.post(
            "/api/invoices",
            json={
                "client_id": "no-such-client",
                "invoice_number": "INV-1",
                "issue_date": "2026-02-01",
                "due_date": "2026-02-10",
                "items": [{"description": "x", "quantity": "1", "unit_price": "1"}],
            },
            headers=admin,
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "client_id"

    async def test_update_replaces_items(self, client, admin, factory):
        customer = await factory.client_record(admin)
        invoice = await factory.invoice(admin, customer["id"])
        resp = await client.put(
            f"/api/invoices/{invoice['id']}",
            json={
                "client_id": customer["id"],
                "invoice_number": "INV-001",
                "issue_date": "2026-01-01",
                "due_date": "2026-01-31",
                "items": [{"description": "Retainer", "quantity": "1", "unit_price": "500"}],
            },
            headers=admin,
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert [i["description"] for i in body["items"]] == ["Retainer"]
        assert Decimal(body["total"]) == Decimal("500.00")

    async def test_paid_invoice_is_frozen(self, client, admin, factory):
        customer = await factory.client_record(admin)
        invoice = await factory.invoice(admin, customer["id"], status="paid")
        resp = await client.put(
            f"/api/invoices/{invoice['id']}",
            json={
                "client_id": customer["id"],
                "invoice_number": "INV-001",
                "issue_date": "2026-01-01",
                "due_date": "2026-01-31",
                "items": [{"description": "x", "quantity": "1", "unit_price": "1"}],
            },
            headers=admin,
        )
        assert resp.status_code == 409

    async def test_staff_cannot_mark_paid(self, client, admin, factory, make_user):
        staff = await make_user("staff", "clerk@acme-corp.com")
        customer = await factory.client_record(admin)
        resp = await client.post(
            "/api/invoices",
            json={
                "client_id": customer["id"],
                "invoice_number": "INV-9",
                "status": "paid",
                "issue_date": "2026-01-01",
                "due_date": "2026-01-31",
                "items": [{"description": "x", "quantity": "1", "unit_price": "1"}],
            },
            headers=staff,
        )
        assert resp.status_code == 403

    async def test_list_filters_and_search(self, client, admin, factory):
        wayne = await factory.client_record(admin, name="Wayne Enterprises")
        stark = await factory.client_record(admin, name="Stark Industries")
        await factory.invoice(admin, wayne["id"], number="INV-001")
        await factory.invoice(admin, stark["id"], number="INV-002", status="sent")

        resp = await client.get("/api/invoices", params={"status": "sent"}, headers=admin)
        assert [i["invoice_number"] for i in resp.json()["data"]] == ["INV-002"]

        resp = await client.get("/api/invoices", params={"search": "wayne"}, headers=admin)
        assert [i["invoice_number"] for i in resp.json()["data"]] == ["INV-001"]

        resp = await client.get("/api/invoices", params={"limit": 1}, headers=admin)
        meta = resp.json()["meta"]
        assert meta == {"total": 2, "page": 1, "limit": 1, "page_count": 2}

    async def test_deleted_invoice_is_gone(self, client, admin, factory):
        customer = await factory.client_record(admin)
        invoice = await factory.invoice(admin, customer["id"])
        resp = await client.delete(f"/api/invoices/{invoice['id']}", headers=admin)
        assert resp.status_code == 200
        resp = await client.get(f"/api/invoices/{invoice['id']}", headers=admin)
        assert resp.status_code == 404

    async def test_pdf(self, client, admin, factory):
        customer = await factory.client_record(admin, name="Wayne <Enterprises>")
        invoice = await factory.invoice(admin, customer["id"])
        resp = await client.get(f"/api/invoices/{invoice['id']}/pdf", headers=admin)
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert "invoice-INV-001.pdf" in resp.headers["content-disposition"]
        assert resp.content.startswith(b"%PDF")



class TestSendEmail:
    async def test_emails_pdf_and_marks_draft_sent(self, client, admin, factory, mailer):
        customer = await factory.client_record(admin, email="ap@wayne.com")
        invoice = await factory.invoice(admin, customer["id"])

        resp = await client.post(f"/api/invoices/{invoice['id']}/send-email", headers=admin)
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"message": "Email sent successfully", "to": "ap@wayne.com"}

        message = mailer.outbox[0]
        assert message["to"] == "ap@wayne.com"
        assert "INV-001" in message["subject"]
        assert "Wayne Enterprises" in message["text"]
        [(filename, pdf)] = message["attachments"]
        assert filename == "invoice-INV-001.pdf"
        assert pdf.startswith(b"%PDF")

        resp = await client.get(f"/api/invoices/{invoice['id']}", headers=admin)
        assert resp.json()["status"] == "sent"

    async def test_client_without_email(self, client, admin, factory, mailer):
        customer = await factory.client_record(admin)
        invoice = await factory.invoice(admin, customer["id"])
        resp = await client.post(f"/api/invoices/{invoice['id']}/send-email", headers=admin)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Client does not have an email address"
        assert mailer.outbox == []

        resp = await client.get(f"/api/invoices/{invoice['id']}", headers=admin)
        assert resp.json()["status"] == "draft"

    async def test_other_company_cannot_send(self, client, admin, other_admin, factory, mailer):
        customer = await factory.client_record(admin, email="ap@wayne.com")
        invoice = await factory.invoice(admin, customer["id"])
        resp = await client.post(
            f"/api/invoices/{invoice['id']}/send-email", headers=other_admin
        )
        assert resp.status_code == 404
        assert mailer.outbox == []


@pytest.mark.parametrize("limit", [0, 101])
async def test_page_limit_bounds(client, admin, limit):
    resp = await client.get("/api/invoices", params={"limit": limit}, headers=admin)
    assert resp.status_code == 400
