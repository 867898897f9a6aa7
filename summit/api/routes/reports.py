"""
api/routes/reports.py
---------------------
GET /api/reports/aging-receivables     ?startDate&endDate
GET /api/reports/invoice-summary
GET /api/reports/outstanding-invoices
GET /api/reports/revenue-overview      ?months=12
GET /api/reports/profit-loss           ?startDate&endDate   (default: last 6 months)
GET /api/reports/income-vs-expenses    ?months=12
GET /api/reports/expense-breakdown     ?months=12
GET /api/reports/cash-flow             ?startDate&endDate or ?months=6
GET /api/reports/transaction-metrics   ?startDate&endDate&accountId

All need finance.viewReports. Date ranges are inclusive on both ends;
`months` counts calendar months back from today, the current one included.
"""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.errors import ValidationFailed
from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import require
from summit.schemas.report import (
    AgingReport,
    CashFlowReport,
    ExpenseBreakdownReport,
    IncomeVsExpensesReport,
    InvoiceSummary,
    OutstandingInvoicesReport,
    ProfitLossReport,
    RevenueOverview,
    TransactionMetrics,
)
from summit.services import report_service

router = APIRouter(prefix="/reports", tags=["Reports"])

Db = Annotated[AsyncSession, Depends(get_db)]
CanView = Annotated[Authorized, Depends(require(Perm.FINANCE_VIEW_REPORTS))]
StartDate = Annotated[Optional[date], Query(alias="startDate")]
EndDate = Annotated[Optional[date], Query(alias="endDate")]


def _check_range(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and start_date > end_date:
        raise ValidationFailed.for_field("startDate", "startDate must not be after endDate")


# ── Receivables ───────────────────────────────────────────────────────────────

@router.get(
    "/aging-receivables",
    response_model=AgingReport,
    summary="Unpaid receivables grouped by days overdue",
)
async def aging_receivables(
    db: Db, auth: CanView, start_date: StartDate = None, end_date: EndDate = None
) -> AgingReport:
    _check_range(start_date, end_date)
    return await report_service.get_aging_receivables(
        db, auth.company_id, start_date=start_date, end_date=end_date
    )


@router.get(
    "/invoice-summary",
    response_model=InvoiceSummary,
    summary="Invoice count and total per status",
)
async def invoice_summary(db: Db, auth: CanView) -> InvoiceSummary:
    return await report_service.get_invoice_summary(db, auth.company_id)


@router.get(
    "/outstanding-invoices",
    response_model=OutstandingInvoicesReport,
    summary="Open invoices still owed, with aging and top debtors",
)
async def outstanding_invoices(db: Db, auth: CanView) -> OutstandingInvoicesReport:
    return await report_service.get_outstanding_invoices(db, auth.company_id)


@router.get(
    "/revenue-overview",
    response_model=RevenueOverview,
    summary="Paid invoice revenue per month",
)
async def revenue_overview(
    db: Db, auth: CanView, months: Annotated[int, Query(ge=1, le=48)] = 12
) -> RevenueOverview:
    return await report_service.get_revenue_overview(db, auth.company_id, months=months)


# ── Income and expenses ───────────────────────────────────────────────────────

@router.get(
    "/profit-loss",
    response_model=ProfitLossReport,
    summary="Income, expenses and profit for a date range",
)
async def profit_loss(
    db: Db, auth: CanView, start_date: StartDate = None, end_date: EndDate = None
) -> ProfitLossReport:
    _check_range(start_date, end_date)
    return await report_service.get_profit_loss(
        db, auth.company_id, start_date=start_date, end_date=end_date
    )


@router.get(
    "/income-vs-expenses",
    response_model=IncomeVsExpensesReport,
    summary="Monthly income against expenses",
)
async def income_vs_expenses(
    db: Db, auth: CanView, months: Annotated[int, Query(ge=1, le=48)] = 12
) -> IncomeVsExpensesReport:
    return await report_service.get_income_vs_expenses(db, auth.company_id, months=months)


@router.get(
    "/expense-breakdown",
    response_model=ExpenseBreakdownReport,
    summary="Expenses per category and per month",
)
async def expense_breakdown(
    db: Db, auth: CanView, months: Annotated[int, Query(ge=1, le=48)] = 12
) -> ExpenseBreakdownReport:
    return await report_service.get_expense_breakdown(db, auth.company_id, months=months)


# ── Accounts ──────────────────────────────────────────────────────────────────

@router.get(
    "/cash-flow",
    response_model=CashFlowReport,
    summary="Account cash movement with running balance",
)
async def cash_flow(
    db: Db,
    auth: CanView,
    start_date: StartDate = None,
    end_date: EndDate = None,
    months: Annotated[int, Query(ge=1, le=48)] = 6,
) -> CashFlowReport:
    _check_range(start_date, end_date)
    return await report_service.get_cash_flow(
        db, auth.company_id, start_date=start_date, end_date=end_date, months=months
    )


@router.get(
    "/transaction-metrics",
    response_model=TransactionMetrics,
    summary="Transaction totals by type, category and account",
)
async def transaction_metrics(
    db: Db,
    auth: CanView,
    start_date: StartDate = None,
    end_date: EndDate = None,
    account_id: Annotated[Optional[str], Query(alias="accountId")] = None,
) -> TransactionMetrics:
    _check_range(start_date, end_date)
    return await report_service.get_transaction_metrics(
        db, auth.company_id, start_date=start_date, end_date=end_date, account_id=account_id
    )
