"""
schemas/report.py
-----------------
Report payloads. Money is Decimal and leaves the API as a 2dp string;
months are keyed "YYYY-MM".
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel


class AgingBucket(BaseModel):
    range: str
    count: int
    total: Decimal


class AgingReport(BaseModel):
    as_of: date
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    buckets: List[AgingBucket]
    total: Decimal


class StatusTotal(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0.00")


class InvoiceSummary(BaseModel):
    draft: StatusTotal
    sent: StatusTotal
    paid: StatusTotal
    overdue: StatusTotal
    cancelled: StatusTotal
    all: StatusTotal


# ── Income and expenses ───────────────────────────────────────────────────────

class MonthlyProfit(BaseModel):
    month: str
    income: Decimal
    expenses: Decimal
    profit: Decimal


class ProfitSummary(BaseModel):
    total_income: Decimal
    total_expenses: Decimal
    profit: Decimal
    profit_margin: Decimal


class CategoryTotal(BaseModel):
    category_id: Optional[str] = None
    category: str
    total: Decimal


class ProfitLossReport(ProfitSummary):
    start_date: date
    end_date: date
    months: List[MonthlyProfit]
    income_by_category: List[CategoryTotal]
    expenses_by_category: List[CategoryTotal]


class IncomeVsExpensesReport(BaseModel):
    start_date: date
    end_date: date
    months: List[MonthlyProfit]
    summary: ProfitSummary


class MonthlyAmount(BaseModel):
    month: str
    total: Decimal


class ExpenseBreakdownReport(BaseModel):
    start_date: date
    end_date: date
    by_category: List[CategoryTotal]
    by_month: List[MonthlyAmount]
    total: Decimal


# ── Receivables and revenue ───────────────────────────────────────────────────

class OutstandingInvoice(BaseModel):
    id: str
    invoice_number: str
    client_id: str
    client_name: str
    status: str
    issue_date: date
    due_date: date
    total: Decimal
    outstanding: Decimal
    days_overdue: int
    age_category: str


class OutstandingSummary(BaseModel):
    total_outstanding: Decimal
    total_overdue: Decimal
    invoice_count: int
    overdue_count: int


class ClientOutstanding(BaseModel):
    client_id: str
    client_name: str
    total: Decimal


class OutstandingInvoicesReport(BaseModel):
    as_of: date
    invoices: List[OutstandingInvoice]
    aging: List[AgingBucket]
    summary: OutstandingSummary
    top_clients: List[ClientOutstanding]


class RevenueOverview(BaseModel):
    start_date: date
    end_date: date
    months: List[MonthlyAmount]
    total: Decimal
    invoice_status: InvoiceSummary


# ── Accounts and transactions ─────────────────────────────────────────────────

class TypeMetric(BaseModel):
    type: str
    count: int
    total: Decimal


class CategoryMetric(BaseModel):
    category_id: Optional[str] = None
    category: str
    count: int
    net: Decimal


class AccountMetric(BaseModel):
    account_id: str
    account_name: str
    count: int
    net: Decimal


class TransactionMetrics(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    account_id: Optional[str] = None
    total_credits: Decimal
    total_debits: Decimal
    net_cash_flow: Decimal
    by_type: List[TypeMetric]
    by_category: List[CategoryMetric]
    by_account: List[AccountMetric]


class CashFlowMonth(BaseModel):
    month: str
    inflows: Decimal
    outflows: Decimal
    net: Decimal
    balance: Decimal


class ActivityFlow(BaseModel):
    inflows: Decimal = Decimal("0.00")
    outflows: Decimal = Decimal("0.00")
    net: Decimal = Decimal("0.00")


class CashFlowActivities(BaseModel):
    operating: ActivityFlow
    investing: ActivityFlow
    financing: ActivityFlow


class AccountBalance(BaseModel):
    id: str
    name: str
    type: str
    current_balance: Decimal


class CashFlowReport(BaseModel):
    start_date: date
    end_date: date
    opening_balance: Decimal
    total_inflows: Decimal
    total_outflows: Decimal
    net_cash_flow: Decimal
    closing_balance: Decimal
    months: List[CashFlowMonth]
    activities: CashFlowActivities
    accounts: List[AccountBalance]
    balance_by_type: Dict[str, Decimal]
