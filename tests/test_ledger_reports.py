"""
Income, expense, revenue, outstanding-invoice and cash reports.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from summit.services.report_service import age_category, classify_activity, month_keys


def money(value) -> Decimal:
    return Decimal(value)


def this_month() -> str:
    return date.today().strftime("%Y-%m")


async def category(client, headers, kind, name) -> str:
    resp = await client.post(f"/api/{kind}-categories", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


async def income(client, headers, amount, income_date, **extra):
    body = {"source": "Client work", "amount": amount, "income_date": income_date, **extra}
    resp = await client.post("/api/income", json=body, headers=headers)
    assert resp.status_code == 201, resp.text


async def expense(client, headers, amount, expense_date, **extra):
    body = {"vendor": "Landlord", "amount": amount, "expense_date": expense_date, **extra}
    resp = await client.post("/api/expenses", json=body, headers=headers)
    assert resp.status_code == 201, resp.text


async def transaction(client, headers, account_id, type_, amount, on, **extra):
    body = {
        "account_id": account_id,
        "type": type_,
        "description": f"{type_} {amount}",
        "amount": amount,
        "transaction_date": on,
        **extra,
    }
    resp = await client.post("/api/transactions", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestHelpers:
    def test_month_keys_cover_every_month(self):
        assert month_keys(date(2025, 11, 20), date(2026, 2, 3)) == [
            "2025-11",
            "2025-12",
            "2026-01",
            "2026-02",
        ]

    @pytest.mark.parametrize(
        "days, expected",
        [(-3, "current"), (0, "current"), (1, "1-30"), (30, "1-30"), (31, "31-60"), (91, "90+")],
    )
    def test_age_category(self, days, expected):
        assert age_category(days) == expected

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Office equipment", "investing"),
            ("Bank loan", "financing"),
            ("Dividends paid", "financing"),
            ("Rent", "operating"),
            (None, "operating"),
        ],
    )
    def test_classify_activity(self, name, expected):
        assert classify_activity(name) == expected


class TestProfitLoss:
    async def test_totals_months_and_categories(self, client, admin):
        consulting = await category(client, admin, "income", "Consulting")
        rent = await category(client, admin, "expense", "Rent")
        await income(client, admin, "1000.00", "2026-01-10", category_id=consulting)
        await income(client, admin, "500.00", "2026-02-05")
        await expense(client, admin, "300.00", "2026-01-15", category_id=rent)
        # not counted: rejected, or outside the range
        await expense(client, admin, "999.00", "2026-01-20", status="rejected")
        await expense(client, admin, "70.00", "2026-03-01")

        resp = await client.get(
            "/api/reports/profit-loss",
            params={"startDate": "2026-01-01", "endDate": "2026-02-28"},
            headers=admin,
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert money(body["total_income"]) == Decimal("1500.00")
        assert money(body["total_expenses"]) == Decimal("300.00")
        assert money(body["profit"]) == Decimal("1200.00")
        assert money(body["profit_margin"]) == Decimal("80.00")
        assert [
            (m["month"], money(m["income"]), money(m["expenses"]), money(m["profit"]))
            for m in body["months"]
        ] == [
            ("2026-01", Decimal("1000.00"), Decimal("300.00"), Decimal("700.00")),
            ("2026-02", Decimal("500.00"), Decimal("0.00"), Decimal("500.00")),
        ]
        assert [(c["category"], money(c["total"])) for c in body["income_by_category"]] == [
            ("Consulting", Decimal("1000.00")),
            ("Uncategorized", Decimal("500.00")),
        ]
        assert [(c["category"], money(c["total"])) for c in body["expenses_by_category"]] == [
            ("Rent", Decimal("300.00")),
        ]

    async def test_defaults_to_the_last_six_months(self, client, admin):
        resp = await client.get("/api/reports/profit-loss", headers=admin)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["months"]) == 6
        assert body["months"][-1]["month"] == this_month()
        assert money(body["profit_margin"]) == 0

    async def test_inverted_range_rejected(self, client, admin):
        resp = await client.get(
            "/api/reports/profit-loss",
            params={"startDate": "2026-03-01", "endDate": "2026-02-01"},
            headers=admin,
        )
        assert resp.status_code == 400

    async def test_other_company_is_invisible(self, client, admin, other_admin):
        await income(client, other_admin, "1000.00", "2026-01-10")
        resp = await client.get(
            "/api/reports/profit-loss",
            params={"startDate": "2026-01-01", "endDate": "2026-01-31"},
            headers=admin,
        )
        assert money(resp.json()["total_income"]) == 0


class TestIncomeVsExpenses:
    async def test_current_month_and_summary(self, client, admin):
        today = date.today().isoformat()
        await income(client, admin, "400.00", today)
        await expense(client, admin, "100.00", today)

        resp = await client.get("/api/reports/income-vs-expenses", headers=admin)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert len(body["months"]) == 12
        last = body["months"][-1]
        assert last["month"] == this_month()
        assert money(last["profit"]) == Decimal("300.00")
        assert money(body["summary"]["profit_margin"]) == Decimal("75.00")

    @pytest.mark.parametrize("months", [0, 49])
    async def test_months_bounds(self, client, admin, months):
        resp = await client.get(
            "/api/reports/income-vs-expenses", params={"months": months}, headers=admin
        )
        assert resp.status_code == 400


class TestExpenseBreakdown:
    async def test_every_category_is_listed(self, client, admin):
        today = date.today().isoformat()
        rent = await category(client, admin, "expense", "Rent")
        await category(client, admin, "expense", "Travel")
        await expense(client, admin, "300.00", today, category_id=rent)
        await expense(client, admin, "50.00", today)

        resp = await client.get(
            "/api/reports/expense-breakdown", params={"months": 3}, headers=admin
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert [(c["category"], money(c["total"])) for c in body["by_category"]] == [
            ("Rent", Decimal("300.00")),
            ("Uncategorized", Decimal("50.00")),
            ("Travel", Decimal("0.00")),
        ]
        assert [m["total"] for m in body["by_month"]][:2] == ["0.00", "0.00"]
        assert body["by_month"][-1] == {"month": this_month(), "total": "350.00"}
        assert money(body["total"]) == Decimal("350.00")


class TestOutstandingInvoices:
    async def test_remainders_aging_and_top_clients(self, client, admin, factory):
        today = date.today()
        wayne = await factory.client_record(admin, name="Wayne Enterprises")
        stark = await factory.client_record(admin, name="Stark Industries")
        late = await factory.invoice(
            admin,
            wayne["id"],
            number="A",
            status="sent",
            issue_date=(today - timedelta(days=40)).isoformat(),
            due_date=(today - timedelta(days=10)).isoformat(),
        )
        await factory.invoice(
            admin,
            stark["id"],
            number="B",
            status="sent",
            issue_date=today.isoformat(),
            due_date=(today + timedelta(days=5)).isoformat(),
        )
        await factory.invoice(admin, stark["id"], number="DRAFT")
        resp = await client.post(
            f"/api/invoices/{late['id']}/payments",
            json={"amount": "30.00", "payment_date": today.isoformat()},
            headers=admin,
        )
        assert resp.status_code == 201, resp.text

        resp = await client.get("/api/reports/outstanding-invoices", headers=admin)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert [
            (i["invoice_number"], money(i["outstanding"]), i["days_overdue"], i["age_category"])
            for i in body["invoices"]
        ] == [
            ("A", Decimal("70.00"), 10, "1-30"),
            ("B", Decimal("100.00"), 0, "current"),
        ]
        assert body["summary"] == {
            "total_outstanding": "170.00",
            "total_overdue": "70.00",
            "invoice_count": 2,
            "overdue_count": 1,
        }
        aging = {b["range"]: (b["count"], money(b["total"])) for b in body["aging"]}
        assert aging["1-30"] == (1, Decimal("70.00"))
        assert aging["current"] == (1, Decimal("100.00"))
        assert [c["client_name"] for c in body["top_clients"]] == [
            "Stark Industries",
            "Wayne Enterprises",
        ]


class TestRevenueOverview:
    async def test_paid_invoices_count_in_the_month_paid(self, client, admin, factory):
        customer = await factory.client_record(admin)
        invoice = await factory.invoice(admin, customer["id"], status="sent")
        await factory.invoice(admin, customer["id"], number="INV-002", status="sent")
        resp = await client.post(
            f"/api/invoices/{invoice['id']}/payments",
            json={"amount": "100.00", "payment_date": date.today().isoformat()},
            headers=admin,
        )
        assert resp.status_code == 201, resp.text

        resp = await client.get("/api/reports/revenue-overview", headers=admin)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert len(body["months"]) == 12
        assert body["months"][-1] == {
            "month": datetime.now(timezone.utc).strftime("%Y-%m"),
            "total": "100.00",
        }
        assert money(body["total"]) == Decimal("100.00")
        assert body["invoice_status"]["paid"] == {"count": 1, "total": "100.00"}
        assert body["invoice_status"]["sent"]["count"] == 1


class TestTransactionMetrics:
    async def test_totals_and_breakdowns(self, client, admin, factory):
        operating = await factory.account(admin, initial_balance="100.00")
        savings = await factory.account(admin, name="Savings")
        sales = await category(client, admin, "income", "Sales")
        await transaction(client, admin, operating["id"], "credit", "50.00", "2026-03-01", category_id=sales)
        await transaction(client, admin, operating["id"], "debit", "30.00", "2026-03-02")
        await transaction(client, admin, savings["id"], "credit", "20.00", "2026-03-03")

        resp = await client.get("/api/reports/transaction-metrics", headers=admin)
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert money(body["total_credits"]) == Decimal("70.00")
        assert money(body["total_debits"]) == Decimal("30.00")
        assert money(body["net_cash_flow"]) == Decimal("40.00")
        assert body["by_type"] == [
            {"type": "debit", "count": 1, "total": "30.00"},
            {"type": "credit", "count": 2, "total": "70.00"},
        ]
        assert [(c["category"], c["count"], money(c["net"])) for c in body["by_category"]] == [
            ("Sales", 1, Decimal("50.00")),
            ("Uncategorized", 2, Decimal("-10.00")),
        ]
        assert [(a["account_name"], money(a["net"])) for a in body["by_account"]] == [
            ("Operating", Decimal("20.00")),
            ("Savings", Decimal("20.00")),
        ]

    async def test_account_and_date_filters(self, client, admin, factory):
        operating = await factory.account(admin)
        savings = await factory.account(admin, name="Savings")
        await transaction(client, admin, operating["id"], "credit", "50.00", "2026-03-01")
        await transaction(client, admin, operating["id"], "credit", "5.00", "2026-04-01")
        await transaction(client, admin, savings["id"], "credit", "20.00", "2026-03-03")

        resp = await client.get(
            "/api/reports/transaction-metrics",
            params={"accountId": operating["id"], "endDate": "2026-03-31"},
            headers=admin,
        )
        assert money(resp.json()["total_credits"]) == Decimal("50.00")


class TestCashFlow:
    async def test_running_balance_and_activities(self, client, admin, factory):
        account = await factory.account(admin, initial_balance="100.00")
        loan = await category(client, admin, "income", "Bank loan")
        equipment = await category(client, admin, "expense", "Office equipment")
        await transaction(client, admin, account["id"], "debit", "10.00", "2025-12-20")
        await transaction(client, admin, account["id"], "credit", "50.00", "2026-01-10", category_id=loan)
        await transaction(
            client, admin, account["id"], "debit", "30.00", "2026-02-03", category_id=equipment
        )
        await transaction(client, admin, account["id"], "credit", "5.00", "2026-02-10")

        resp = await client.get(
            "/api/reports/cash-flow",
            params={"startDate": "2026-01-01", "endDate": "2026-02-28"},
            headers=admin,
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert money(body["opening_balance"]) == Decimal("90.00")
        assert money(body["total_inflows"]) == Decimal("55.00")
        assert money(body["total_outflows"]) == Decimal("30.00")
        assert money(body["closing_balance"]) == Decimal("115.00")
        assert [(m["month"], money(m["net"]), money(m["balance"])) for m in body["months"]] == [
            ("2026-01", Decimal("50.00"), Decimal("140.00")),
            ("2026-02", Decimal("-25.00"), Decimal("115.00")),
        ]
        activities = body["activities"]
        assert money(activities["financing"]["inflows"]) == Decimal("50.00")
        assert money(activities["investing"]["net"]) == Decimal("-30.00")
        assert money(activities["operating"]["net"]) == Decimal("5.00")

        # closing balance agrees with the ledger
        assert [(a["name"], money(a["current_balance"])) for a in body["accounts"]] == [
            ("Operating", Decimal("115.00")),
        ]
        assert money(body["balance_by_type"]["bank"]) == Decimal("115.00")
        assert money(body["balance_by_type"]["cash"]) == 0

    async def test_months_window(self, client, admin):
        resp = await client.get("/api/reports/cash-flow", params={"months": 3}, headers=admin)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["months"]) == 3
        assert body["months"][-1]["month"] == this_month()
        assert body["end_date"] == date.today().isoformat()


@pytest.mark.parametrize(
    "path",
    [
        "profit-loss",
        "cash-flow",
        "income-vs-expenses",
        "expense-breakdown",
        "outstanding-invoices",
        "revenue-overview",
        "transaction-metrics",
    ],
)
async def test_staff_cannot_view_reports(client, make_user, path):
    staff = await make_user("staff", "clerk@acme-corp.com")
    resp = await client.get(f"/api/reports/{path}", headers=staff)
    assert resp.status_code == 403
