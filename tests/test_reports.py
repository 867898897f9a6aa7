"""
Receivables aging and invoice status summary.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

RANGES = ["current", "1-30", "31-60", "61-90", "90+"]


def buckets(body):
    return {b["range"]: (b["count"], Decimal(b["total"])) for b in body["buckets"]}


async def overdue_invoice(factory, headers, client_id, number, days_overdue, **extra):
    due = date.today() - timedelta(days=days_overdue)
    return await factory.invoice(
        headers,
        client_id,
        number=number,
        status=extra.pop("status", "sent"),
        issue_date=(due - timedelta(days=30)).isoformat(),
        due_date=due.isoformat(),
        **extra,
    )


class TestAgingReceivables:
    async def test_empty_company_has_all_zero_buckets(self, client, admin):
        resp = await client.get("/api/reports/aging-receivables", headers=admin)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert [b["range"] for b in body["buckets"]] == RANGES
        assert all(b["count"] == 0 and Decimal(b["total"]) == 0 for b in body["buckets"])
        assert Decimal(body["total"]) == 0

    async def test_invoices_land_in_their_bucket(self, client, admin, factory):
        customer = await factory.client_record(admin)
        await overdue_invoice(factory, admin, customer["id"], "A", days_overdue=-5)
        await overdue_invoice(factory, admin, customer["id"], "B", days_overdue=10)
        await overdue_invoice(factory, admin, customer["id"], "C", days_overdue=45)
        await overdue_invoice(factory, admin, customer["id"], "D", days_overdue=75, status="overdue")
        await overdue_invoice(factory, admin, customer["id"], "E", days_overdue=120)
        # not receivable
        await overdue_invoice(factory, admin, customer["id"], "F", days_overdue=45, status="draft")
        await overdue_invoice(factory, admin, customer["id"], "G", days_overdue=45, status="paid")

        resp = await client.get("/api/reports/aging-receivables", headers=admin)
        result = buckets(resp.json())
        hundred = Decimal("100.00")
        assert result == {
            "current": (1, hundred),
            "1-30": (1, hundred),
            "31-60": (1, hundred),
            "61-90": (1, hundred),
            "90+": (1, hundred),
        }
        assert Decimal(resp.json()["total"]) == Decimal("500.00")

    async def test_partial_payment_reduces_remainder(self, client, admin, factory):
        customer = await factory.client_record(admin)
        invoice = await overdue_invoice(factory, admin, customer["id"], "A", days_overdue=45)
        resp = await client.post(
            f"/api/invoices/{invoice['id']}/payments",
            json={"amount": "30.00", "payment_date": date.today().isoformat()},
            headers=admin,
        )
        assert resp.status_code == 201, resp.text

        resp = await client.get("/api/reports/aging-receivables", headers=admin)
        assert buckets(resp.json())["31-60"] == (1, Decimal("70.00"))

    async def test_deleted_invoices_are_excluded(self, client, admin, factory):
        customer = await factory.client_record(admin)
        invoice = await overdue_invoice(factory, admin, customer["id"], "A", days_overdue=45)
        await client.delete(f"/api/invoices/{invoice['id']}", headers=admin)

        resp = await client.get("/api/reports/aging-receivables", headers=admin)
        assert Decimal(resp.json()["total"]) == 0

    async def test_other_company_is_invisible(self, client, admin, other_admin, factory):
        customer = await factory.client_record(other_admin)
        await overdue_invoice(factory, other_admin, customer["id"], "X", days_overdue=45)

        resp = await client.get("/api/reports/aging-receivables", headers=admin)
        assert Decimal(resp.json()["total"]) == 0

    async def test_date_range_filters_issue_date(self, client, admin, factory):
        customer = await factory.client_record(admin)
        await overdue_invoice(factory, admin, customer["id"], "A", days_overdue=45)
        start = date.today().isoformat()

        resp = await client.get(
            "/api/reports/aging-receivables", params={"startDate": start}, headers=admin
        )
        assert resp.status_code == 200
        assert resp.json()["start_date"] == start
        assert Decimal(resp.json()["total"]) == 0

    async def test_inverted_range_rejected(self, client, admin):
        resp = await client.get(
            "/api/reports/aging-receivables",
            params={"startDate": "2026-03-01", "endDate": "2026-02-01"},
            headers=admin,
        )
        assert resp.status_code == 400

    @pytest.mark.parametrize("path", ["aging-receivables", "invoice-summary"])
    async def test_staff_cannot_view_reports(self, client, make_user, path):
        staff = await make_user("staff", "clerk@acme-corp.com")
        resp = await client.get(f"/api/reports/{path}", headers=staff)
        assert resp.status_code == 403


class TestInvoiceSummary:
    async def test_totals_per_status(self, client, admin, factory):
        customer = await factory.client_record(admin)
        await factory.invoice(admin, customer["id"], number="D1")
        await factory.invoice(admin, customer["id"], number="D2")
        await factory.invoice(admin, customer["id"], number="S1", status="sent")
        await factory.invoice(admin, customer["id"], number="C1", status="cancelled")

        resp = await client.get("/api/reports/invoice-summary", headers=admin)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["draft"]["count"] == 2
        assert Decimal(body["draft"]["total"]) == Decimal("200.00")
        assert body["sent"]["count"] == 1
        assert body["paid"]["count"] == 0
        assert body["cancelled"]["count"] == 1
        assert body["all"]["count"] == 4
        assert Decimal(body["all"]["total"]) == Decimal("400.00")

    async def test_accountant_can_view(self, client, make_user):
        accountant = await make_user("accountant", "books@acme-corp.com")
        resp = await client.get("/api/reports/invoice-summary", headers=accountant)
        assert resp.status_code == 200
        assert resp.json()["all"] == {"count": 0, "total": "0.00"}
