"""
services/report_service.py
--------------------------
Read-only financial reports.

Aging receivables
    Open invoices are `sent` or `overdue`, not soft-deleted, with an unpaid
    remainder (total minus completed payments) above zero. Days overdue is
    `as_of - due_date`; the bucket boundaries are turned into due-date
    thresholds in Python so the whole report is one grouped query with a
    CASE expression, portable across PostgreSQL and SQLite.

        current   due_date >= as_of
        1-30      as_of - 30  <= due_date < as_of
        31-60     as_of - 60  <= due_date < as_of - 30
        61-90     as_of - 90  <= due_date < as_of - 60
        90+       due_date <  as_of - 90

Invoice summary
    Count and total per status in one GROUP BY; `all` is the sum over
    statuses, so the two always agree.

Income and expense reports (profit-loss, income-vs-expenses,
expense-breakdown) read the income and expense ledgers, not invoices.
Rejected expenses are left out. Monthly series cover every calendar month
of the window, empty months included, and are grouped with EXTRACT so the
same query runs on PostgreSQL and SQLite.

Revenue counts paid invoices in the month of `paid_at`. Cash flow and
transaction metrics read the transactions of live accounts only:

    opening = sum(initial_balance) + net transactions before start_date
    closing = opening + inflows - outflows inside the window

Cash-flow activities are picked from the transaction category name;
anything unmatched, uncategorized transactions included, is operating.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, case, extract, func, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.logging import get_logger
from summit.db.base import to_money, utcnow
from summit.models.invoice import (
    OPEN_INVOICE_STATUSES,
    Invoice,
    InvoiceStatus,
    Payment,
    PaymentStatus,
)
from summit.models.ledger import (
    Account,
    AccountType,
    Expense,
    ExpenseCategory,
    ExpenseStatus,
    Income,
    IncomeCategory,
    Transaction,
    TransactionType,
)
from summit.models.party import Client
from summit.schemas.report import (
    AccountBalance,
    AccountMetric,
    ActivityFlow,
    AgingBucket,
    AgingReport,
    CashFlowActivities,
    CashFlowMonth,
    CashFlowReport,
    CategoryMetric,
    CategoryTotal,
    ClientOutstanding,
    ExpenseBreakdownReport,
    IncomeVsExpensesReport,
    InvoiceSummary,
    MonthlyAmount,
    MonthlyProfit,
    OutstandingInvoice,
    OutstandingInvoicesReport,
    OutstandingSummary,
    ProfitLossReport,
    ProfitSummary,
    RevenueOverview,
    StatusTotal,
    TransactionMetrics,
    TypeMetric,
)
from summit.services.recurring_service import add_months

logger = get_logger(__name__)

AGING_RANGES = ("current", "1-30", "31-60", "61-90", "90+")

ZERO = Decimal("0.00")
UNCATEGORIZED = "Uncategorized"

# matched against the lower-cased category name, investing first
INVESTING_KEYWORDS = ("equipment", "asset", "property", "investment")
FINANCING_KEYWORDS = ("loan", "debt", "interest", "dividend", "share", "equity", "capital")


def _paid_subquery(company_id: str):
    return (
        select(
            Payment.invoice_id.label("invoice_id"),
            func.sum(Payment.amount).label("paid"),
        )
        .where(
            Payment.company_id == company_id,
            Payment.soft_delete.is_(False),
            Payment.status == PaymentStatus.completed.value,
        )
        .group_by(Payment.invoice_id)
        .subquery()
    )


async def get_aging_receivables(
    db: AsyncSession,
    company_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    as_of: Optional[date] = None,
) -> AgingReport:
    as_of = as_of or date.today()
    d30 = as_of - timedelta(days=30)
    d60 = as_of - timedelta(days=60)
    d90 = as_of - timedelta(days=90)

    paid = _paid_subquery(company_id)
    remainder = Invoice.total - func.coalesce(paid.c.paid, literal(0))

    bucket = case(
        (Invoice.due_date >= as_of, literal("current")),
        (Invoice.due_date >= d30, literal("1-30")),
        (Invoice.due_date >= d60, literal("31-60")),
        (Invoice.due_date >= d90, literal("61-90")),
        else_=literal("90+"),
    ).label("bucket")

    conditions = [
        Invoice.company_id == company_id,
        Invoice.soft_delete.is_(False),
        Invoice.status.in_(OPEN_INVOICE_STATUSES),
        remainder > 0,
    ]
    if start_date is not None:
        conditions.append(Invoice.issue_date >= start_date)
    if end_date is not None:
        conditions.append(Invoice.issue_date <= end_date)

    open_invoices = (
        select(bucket, remainder.label("remainder"))
        .select_from(Invoice)
        .outerjoin(paid, paid.c.invoice_id == Invoice.id)
        .where(and_(*conditions))
        .subquery()
    )
    # grouping on the subquery column keeps the CASE parameters out of GROUP BY
    stmt = select(
        open_invoices.c.bucket,
        func.count(),
        func.sum(open_invoices.c.remainder),
    ).group_by(open_invoices.c.bucket)
    rows = {name: (count, total) for name, count, total in (await db.execute(stmt)).all()}

    buckets = []
    grand_total = Decimal("0.00")
    for name in AGING_RANGES:
        count, total = rows.get(name, (0, None))
        total = to_money(total)
        grand_total += total
        buckets.append(AgingBucket(range=name, count=int(count), total=total))

    logger.debug("Aging report built", company_id=company_id, as_of=as_of.isoformat())
    return AgingReport(
        as_of=as_of,
        start_date=start_date,
        end_date=end_date,
        buckets=buckets,
        total=grand_total,
    )


async def get_invoice_summary(db: AsyncSession, company_id: str) -> InvoiceSummary:
    stmt = (
        select(Invoice.status, func.count(Invoice.id), func.sum(Invoice.total))
        .where(Invoice.company_id == company_id, Invoice.soft_delete.is_(False))
        .group_by(Invoice.status)
    )
    rows = {status: (count, total) for status, count, total in (await db.execute(stmt)).all()}

    per_status = {}
    all_count = 0
    all_total = Decimal("0.00")
    for status in InvoiceStatus:
        count, total = rows.get(status.value, (0, None))
        entry = StatusTotal(count=int(count), total=to_money(total))
        per_status[status.value] = entry
        all_count += entry.count
        all_total += entry.total

    return InvoiceSummary(**per_status, all=StatusTotal(count=all_count, total=all_total))


# ── Month helpers ─────────────────────────────────────────────────────────────

def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def month_keys(start: date, end: date) -> List[str]:
    keys = []
    cursor = start.replace(day=1)
    while cursor <= end:
        keys.append(month_key(cursor))
        cursor = add_months(cursor, 1)
    return keys


def month_window(months: int, today: Optional[date] = None) -> Tuple[date, date]:
    """The last `months` calendar months, the current one included."""
    today = today or date.today()
    return add_months(today.replace(day=1), -(months - 1)), today


def percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return (part * 100 / whole).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


async def _monthly_totals(
    db: AsyncSession, date_column, amount, *conditions
) -> Dict[str, Decimal]:
    year = extract("year", date_column)
    month = extract("month", date_column)
    stmt = select(year, month, func.sum(amount)).where(*conditions).group_by(year, month)
    return {
        f"{int(y):04d}-{int(m):02d}": to_money(total)
        for y, m, total in (await db.execute(stmt)).all()
    }


# ── Income and expenses ───────────────────────────────────────────────────────

def _income_in(company_id: str, start: date, end: date):
    return (
        Income.company_id == company_id,
        Income.soft_delete.is_(False),
        Income.income_date >= start,
        Income.income_date <= end,
    )


def _expenses_in(company_id: str, start: date, end: date):
    return (
        Expense.company_id == company_id,
        Expense.soft_delete.is_(False),
        Expense.status != ExpenseStatus.rejected.value,
        Expense.expense_date >= start,
        Expense.expense_date <= end,
    )


def _by_total(rows: List[CategoryTotal]) -> List[CategoryTotal]:
    return sorted(rows, key=lambda row: (-row.total, row.category))


async def _category_totals(
    db: AsyncSession, model, category_model, conditions
) -> List[CategoryTotal]:
    stmt = (
        select(model.category_id, category_model.name, func.sum(model.amount))
        .select_from(model)
        .outerjoin(category_model, category_model.id == model.category_id)
        .where(*conditions)
        .group_by(model.category_id, category_model.name)
    )
    return _by_total([
        CategoryTotal(category_id=category_id, category=name or UNCATEGORIZED, total=to_money(total))
        for category_id, name, total in (await db.execute(stmt)).all()
    ])


async def _profit_by_month(
    db: AsyncSession, company_id: str, start: date, end: date
) -> Tuple[List[MonthlyProfit], ProfitSummary]:
    income = await _monthly_totals(
        db, Income.income_date, Income.amount, *_income_in(company_id, start, end)
    )
    expenses = await _monthly_totals(
        db, Expense.expense_date, Expense.amount, *_expenses_in(company_id, start, end)
    )
    months = []
    for key in month_keys(start, end):
        month_income = income.get(key, ZERO)
        month_expenses = expenses.get(key, ZERO)
        months.append(MonthlyProfit(
            month=key,
            income=month_income,
            expenses=month_expenses,
            profit=month_income - month_expenses,
        ))
    total_income = sum(income.values(), ZERO)
    total_expenses = sum(expenses.values(), ZERO)
    profit = total_income - total_expenses
    summary = ProfitSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        profit=profit,
        profit_margin=percent(profit, total_income),
    )
    return months, summary


async def get_profit_loss(
    db: AsyncSession,
    company_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> ProfitLossReport:
    if start_date is None or end_date is None:
        start_date, end_date = month_window(6, today)
    months, summary = await _profit_by_month(db, company_id, start_date, end_date)
    income_by_category = await _category_totals(
        db, Income, IncomeCategory, _income_in(company_id, start_date, end_date)
    )
    expenses_by_category = await _category_totals(
        db, Expense, ExpenseCategory, _expenses_in(company_id, start_date, end_date)
    )
    return ProfitLossReport(
        start_date=start_date,
        end_date=end_date,
        months=months,
        income_by_category=income_by_category,
        expenses_by_category=expenses_by_category,
        **summary.model_dump(),
    )


async def get_income_vs_expenses(
    db: AsyncSession, company_id: str, months: int = 12, today: Optional[date] = None
) -> IncomeVsExpensesReport:
    start, end = month_window(months, today)
    rows, summary = await _profit_by_month(db, company_id, start, end)
    return IncomeVsExpensesReport(start_date=start, end_date=end, months=rows, summary=summary)


async def get_expense_breakdown(
    db: AsyncSession, company_id: str, months: int = 12, today: Optional[date] = None
) -> ExpenseBreakdownReport:
    """Every live category is listed, spent on or not."""
    start, end = month_window(months, today)
    in_window = _expenses_in(company_id, start, end)

    by_category = await _category_totals(db, Expense, ExpenseCategory, in_window)
    seen = {row.category_id for row in by_category}
    live = await db.execute(
        select(ExpenseCategory.id, ExpenseCategory.name).where(
            ExpenseCategory.company_id == company_id,
            ExpenseCategory.soft_delete.is_(False),
        )
    )
    by_category += [
        CategoryTotal(category_id=category_id, category=name, total=ZERO)
        for category_id, name in live.all()
        if category_id not in seen
    ]

    monthly = await _monthly_totals(db, Expense.expense_date, Expense.amount, *in_window)
    return ExpenseBreakdownReport(
        start_date=start,
        end_date=end,
        by_category=_by_total(by_category),
        by_month=[
            MonthlyAmount(month=key, total=monthly.get(key, ZERO))
            for key in month_keys(start, end)
        ],
        total=sum(monthly.values(), ZERO),
    )


# ── Receivables and revenue ───────────────────────────────────────────────────

def age_category(days_overdue: int) -> str:
    if days_overdue <= 0:
        return "current"
    if days_overdue <= 30:
        return "1-30"
    if days_overdue <= 60:
        return "31-60"
    if days_overdue <= 90:
        return "61-90"
    return "90+"


async def get_outstanding_invoices(
    db: AsyncSession, company_id: str, as_of: Optional[date] = None
) -> OutstandingInvoicesReport:
    """
    Open invoices with money still owed, oldest due date first. Amounts are
    the unpaid remainder, the same figure the aging report buckets.
    """
    as_of = as_of or date.today()
    paid = _paid_subquery(company_id)
    remainder = Invoice.total - func.coalesce(paid.c.paid, literal(0))
    stmt = (
        select(
            Invoice.id,
            Invoice.invoice_number,
            Invoice.client_id,
            Client.name,
            Invoice.status,
            Invoice.issue_date,
            Invoice.due_date,
            Invoice.total,
            remainder.label("outstanding"),
        )
        .join(Client, Client.id == Invoice.client_id)
        .outerjoin(paid, paid.c.invoice_id == Invoice.id)
        .where(
            Invoice.company_id == company_id,
            Invoice.soft_delete.is_(False),
            Invoice.status.in_(OPEN_INVOICE_STATUSES),
            remainder > 0,
        )
        .order_by(Invoice.due_date, Invoice.invoice_number)
    )

    invoices = []
    for row in (await db.execute(stmt)).all():
        days_overdue = max(0, (as_of - row.due_date).days)
        invoices.append(OutstandingInvoice(
            id=row.id,
            invoice_number=row.invoice_number,
            client_id=row.client_id,
            client_name=row.name,
            status=row.status,
            issue_date=row.issue_date,
            due_date=row.due_date,
            total=to_money(row.total),
            outstanding=to_money(row.outstanding),
            days_overdue=days_overdue,
            age_category=age_category(days_overdue),
        ))

    aging = []
    for name in AGING_RANGES:
        in_bucket = [inv for inv in invoices if inv.age_category == name]
        aging.append(AgingBucket(
            range=name,
            count=len(in_bucket),
            total=sum((inv.outstanding for inv in in_bucket), ZERO),
        ))

    overdue = [inv for inv in invoices if inv.days_overdue > 0]
    clients: Dict[str, ClientOutstanding] = {}
    for inv in invoices:
        entry = clients.setdefault(
            inv.client_id,
            ClientOutstanding(client_id=inv.client_id, client_name=inv.client_name, total=ZERO),
        )
        entry.total += inv.outstanding
    top_clients = sorted(clients.values(), key=lambda c: (-c.total, c.client_name))[:5]

    return OutstandingInvoicesReport(
        as_of=as_of,
        invoices=invoices,
        aging=aging,
        summary=OutstandingSummary(
            total_outstanding=sum((inv.outstanding for inv in invoices), ZERO),
            total_overdue=sum((inv.outstanding for inv in overdue), ZERO),
            invoice_count=len(invoices),
            overdue_count=len(overdue),
        ),
        top_clients=top_clients,
    )


async def get_revenue_overview(
    db: AsyncSession, company_id: str, months: int = 12, today: Optional[date] = None
) -> RevenueOverview:
    # paid_at is UTC, so the window is too
    start, end = month_window(months, today or utcnow().date())
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    revenue = await _monthly_totals(
        db,
        Invoice.paid_at,
        Invoice.total,
        Invoice.company_id == company_id,
        Invoice.soft_delete.is_(False),
        Invoice.status == InvoiceStatus.paid.value,
        Invoice.paid_at >= lower,
        Invoice.paid_at < upper,
    )
    return RevenueOverview(
        start_date=start,
        end_date=end,
        months=[
            MonthlyAmount(month=key, total=revenue.get(key, ZERO))
            for key in month_keys(start, end)
        ],
        total=sum(revenue.values(), ZERO),
        invoice_status=await get_invoice_summary(db, company_id),
    )


# ── Accounts and transactions ─────────────────────────────────────────────────

def _signed_amount():
    return case(
        (Transaction.type == TransactionType.credit.value, Transaction.amount),
        else_=-Transaction.amount,
    )


def _amount_if(type_: TransactionType):
    return case((Transaction.type == type_.value, Transaction.amount), else_=literal(0))


async def _category_names(db: AsyncSession, company_id: str) -> Dict[str, str]:
    """Transaction category ids point at either category table."""
    names = {}
    for model in (ExpenseCategory, IncomeCategory):
        rows = await db.execute(select(model.id, model.name).where(model.company_id == company_id))
        names.update(dict(rows.all()))
    return names


def classify_activity(category_name: Optional[str]) -> str:
    name = (category_name or "").lower()
    if any(word in name for word in INVESTING_KEYWORDS):
        return "investing"
    if any(word in name for word in FINANCING_KEYWORDS):
        return "financing"
    return "operating"


async def get_transaction_metrics(
    db: AsyncSession,
    company_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    account_id: Optional[str] = None,
) -> TransactionMetrics:
    conditions = [
        Transaction.company_id == company_id,
        Transaction.soft_delete.is_(False),
        Account.soft_delete.is_(False),
    ]
    if start_date is not None:
        conditions.append(Transaction.transaction_date >= start_date)
    if end_date is not None:
        conditions.append(Transaction.transaction_date <= end_date)
    if account_id is not None:
        conditions.append(Transaction.account_id == account_id)

    def scoped(*columns):
        return (
            select(*columns)
            .select_from(Transaction)
            .join(Account, Account.id == Transaction.account_id)
            .where(*conditions)
        )

    per_type = {
        type_: (count, total)
        for type_, count, total in (await db.execute(
            scoped(Transaction.type, func.count(), func.sum(Transaction.amount))
            .group_by(Transaction.type)
        )).all()
    }
    by_type = []
    for type_ in TransactionType:
        count, total = per_type.get(type_.value, (0, None))
        by_type.append(TypeMetric(type=type_.value, count=int(count), total=to_money(total)))
    credits = to_money(per_type.get(TransactionType.credit.value, (0, None))[1])
    debits = to_money(per_type.get(TransactionType.debit.value, (0, None))[1])

    names = await _category_names(db, company_id)
    by_category = [
        CategoryMetric(
            category_id=category_id,
            category=names.get(category_id, UNCATEGORIZED),
            count=int(count),
            net=to_money(net),
        )
        for category_id, count, net in (await db.execute(
            scoped(Transaction.category_id, func.count(), func.sum(_signed_amount()))
            .group_by(Transaction.category_id)
        )).all()
    ]
    by_account = [
        AccountMetric(account_id=id_, account_name=name, count=int(count), net=to_money(net))
        for id_, name, count, net in (await db.execute(
            scoped(Account.id, Account.name, func.count(), func.sum(_signed_amount()))
            .group_by(Account.id, Account.name)
            .order_by(Account.name)
        )).all()
    ]

    return TransactionMetrics(
        start_date=start_date,
        end_date=end_date,
        account_id=account_id,
        total_credits=credits,
        total_debits=debits,
        net_cash_flow=credits - debits,
        by_type=by_type,
        by_category=sorted(by_category, key=lambda row: row.category),
        by_account=by_account,
    )


async def get_cash_flow(
    db: AsyncSession,
    company_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    months: int = 6,
    today: Optional[date] = None,
) -> CashFlowReport:
    if start_date is None or end_date is None:
        start_date, end_date = month_window(months, today)

    live = (
        Transaction.company_id == company_id,
        Transaction.soft_delete.is_(False),
        Account.soft_delete.is_(False),
    )
    in_window = (
        *live,
        Transaction.transaction_date >= start_date,
        Transaction.transaction_date <= end_date,
    )
    inflow = func.sum(_amount_if(TransactionType.credit))
    outflow = func.sum(_amount_if(TransactionType.debit))

    def joined(*columns):
        return select(*columns).select_from(Transaction).join(
            Account, Account.id == Transaction.account_id
        )

    initial = await db.scalar(
        select(func.sum(Account.initial_balance)).where(
            Account.company_id == company_id, Account.soft_delete.is_(False)
        )
    )
    before = await db.scalar(
        joined(func.sum(_signed_amount())).where(
            *live, Transaction.transaction_date < start_date
        )
    )
    opening = to_money(initial) + to_money(before)

    year = extract("year", Transaction.transaction_date)
    month = extract("month", Transaction.transaction_date)
    monthly = {
        f"{int(y):04d}-{int(m):02d}": (to_money(i), to_money(o))
        for y, m, i, o in (await db.execute(
            joined(year, month, inflow, outflow).where(*in_window).group_by(year, month)
        )).all()
    }
    rows = []
    balance = opening
    for key in month_keys(start_date, end_date):
        month_in, month_out = monthly.get(key, (ZERO, ZERO))
        balance += month_in - month_out
        rows.append(CashFlowMonth(
            month=key,
            inflows=month_in,
            outflows=month_out,
            net=month_in - month_out,
            balance=balance,
        ))
    total_in = sum((i for i, _ in monthly.values()), ZERO)
    total_out = sum((o for _, o in monthly.values()), ZERO)

    names = await _category_names(db, company_id)
    activities = {name: ActivityFlow() for name in ("operating", "investing", "financing")}
    for category_id, category_in, category_out in (await db.execute(
        joined(Transaction.category_id, inflow, outflow)
        .where(*in_window)
        .group_by(Transaction.category_id)
    )).all():
        flow = activities[classify_activity(names.get(category_id))]
        flow.inflows += to_money(category_in)
        flow.outflows += to_money(category_out)
        flow.net = flow.inflows - flow.outflows

    accounts = (await db.execute(
        select(Account)
        .where(Account.company_id == company_id, Account.soft_delete.is_(False))
        .order_by(Account.name)
    )).scalars().all()
    balance_by_type = {type_.value: ZERO for type_ in AccountType}
    for account in accounts:
        balance_by_type[account.type] = balance_by_type.get(account.type, ZERO) + to_money(
            account.current_balance
        )

    logger.debug(
        "Cash flow built",
        company_id=company_id,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
    )
    return CashFlowReport(
        start_date=start_date,
        end_date=end_date,
        opening_balance=opening,
        total_inflows=total_in,
        total_outflows=total_out,
        net_cash_flow=total_in - total_out,
        closing_balance=opening + total_in - total_out,
        months=rows,
        activities=CashFlowActivities(**activities),
        accounts=[
            AccountBalance(
                id=account.id,
                name=account.name,
                type=account.type,
                current_balance=to_money(account.current_balance),
            )
            for account in accounts
        ],
        balance_by_type=balance_by_type,
    )
