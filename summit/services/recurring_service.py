"""
services/recurring_service.py
-----------------------------
Materialises recurring expenses, income and invoices.

Triggered from outside (POST /api/cron/process-recurring); there is no
in-process scheduler. For every row with `recurring != "none"` and
`next_due_date <= today` one non-recurring copy is created, dated at the
due date, and the template's `next_due_date` is advanced by its frequency.
Invoice copies are numbered `{number}-{YYYYMMDD}`; if that number is already
taken a `-2`, `-3`, ... suffix is added.

The advance is a conditional UPDATE on the old `next_due_date`. If two
triggers overlap, only one of them matches the row; the other sees
rowcount 0, discards its copy, and moves on. A template that is several
periods behind catches up one occurrence per run.
"""

import calendar
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from summit.core.logging import get_logger
from summit.models.invoice import Invoice, InvoiceItem, InvoiceStatus, Recurring
from summit.models.ledger import Expense, ExpenseStatus, Income
from summit.repositories.invoice import InvoiceRepository

logger = get_logger(__name__)


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance_date(value: date, frequency: str) -> date:
    if frequency == Recurring.daily.value:
        return value + timedelta(days=1)
    if frequency == Recurring.weekly.value:
        return value + timedelta(weeks=1)
    if frequency == Recurring.monthly.value:
        return add_months(value, 1)
    if frequency == Recurring.yearly.value:
        return add_months(value, 12)
    raise ValueError(f"Not a recurring frequency: {frequency!r}")


def initial_next_due_date(
    recurring: str, anchor: date, next_due_date: Optional[date]
) -> Optional[date]:
    """next_due_date for a template being saved: explicit, derived, or cleared."""
    if recurring == Recurring.none.value:
        return None
    return next_due_date or advance_date(anchor, recurring)


def next_due_date_on_update(
    current: Any, recurring: str, anchor: date, next_due_date: Optional[date]
) -> Optional[date]:
    """
    next_due_date for an edited template. An explicit date wins; an unchanged
    frequency keeps the stored schedule so occurrences already created are
    not created again.
    """
    if recurring == Recurring.none.value:
        return None
    if next_due_date is not None:
        return next_due_date
    if current.recurring == recurring and current.next_due_date is not None:
        return current.next_due_date
    return advance_date(anchor, recurring)


@dataclass
class RecurringRunResult:
    expenses: int = 0
    income: int = 0
    invoices: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


async def _claim(db: AsyncSession, model: Any, row: Any) -> bool:
    """Advance the template iff nobody else advanced it since we read it."""
    result = await db.execute(
        update(model)
        .where(
            model.id == row.id,
            model.company_id == row.company_id,
            model.next_due_date == row.next_due_date,
        )
        .values(next_due_date=advance_date(row.next_due_date, row.recurring))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _copy_expense(db: AsyncSession, template: Expense) -> Expense:
    return Expense(
        company_id=template.company_id,
        category_id=template.category_id,
        vendor_id=template.vendor_id,
        vendor=template.vendor,
        description=template.description,
        amount=template.amount,
        currency=template.currency,
        expense_date=template.next_due_date,
        status=ExpenseStatus.pending.value,
        recurring=Recurring.none.value,
    )


async def _copy_income(db: AsyncSession, template: Income) -> Income:
    return Income(
        company_id=template.company_id,
        category_id=template.category_id,
        client_id=template.client_id,
        source=template.source,
        description=template.description,
        amount=template.amount,
        currency=template.currency,
        income_date=template.next_due_date,
        recurring=Recurring.none.value,
    )


async def _free_invoice_number(db: AsyncSession, template: Invoice, issue_date: date) -> str:
    """`{number}-{YYYYMMDD}`, or with `-2`, `-3`, ... appended when that is taken."""
    repo = InvoiceRepository(db)
    base = f"{template.invoice_number}-{issue_date:%Y%m%d}"
    candidate, suffix = base, 1
    while await repo.number_taken(template.company_id, candidate):
        suffix += 1
        candidate = f"{base}-{suffix}"
    if suffix > 1:
        logger.warning(
            "Recurring invoice number taken",
            company_id=template.company_id,
            template_id=template.id,
            invoice_number=candidate,
        )
    return candidate


async def _copy_invoice(db: AsyncSession, template: Invoice) -> Invoice:
    issue_date = template.next_due_date
    terms = template.due_date - template.issue_date
    copy = Invoice(
        company_id=template.company_id,
        client_id=template.client_id,
        invoice_number=await _free_invoice_number(db, template, issue_date),
        status=InvoiceStatus.draft.value,
        issue_date=issue_date,
        due_date=issue_date + terms,
        subtotal=template.subtotal,
        tax_rate=template.tax_rate,
        tax=template.tax,
        total=template.total,
        currency=template.currency,
        notes=template.notes,
        recurring=Recurring.none.value,
        created_by_id=template.created_by_id,
    )
    copy.items = [
        InvoiceItem(
            position=item.position,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=item.amount,
        )
        for item in template.items
    ]
    return copy


async def _process(
    db: AsyncSession,
    model: Any,
    today: date,
    make_copy,
    counter: str,
    result: RecurringRunResult,
    options=(),
) -> None:
    stmt = (
        select(model)
        .where(
            model.soft_delete.is_(False),
            model.recurring != Recurring.none.value,
            model.next_due_date.is_not(None),
            model.next_due_date <= today,
        )
        .order_by(model.next_due_date, model.id)
    )
    if options:
        stmt = stmt.options(*options)
    templates = list((await db.execute(stmt)).scalars().all())

    for template in templates:
        try:
            async with db.begin_nested():
                copy = await make_copy(db, template)
                if not await _claim(db, model, template):
                    logger.info(
                        "Recurring item already processed",
                        kind=counter,
                        template_id=template.id,
                    )
                    result.skipped += 1
                    continue
                db.add(copy)
                await db.flush()
            setattr(result, counter, getattr(result, counter) + 1)
            logger.info(
                "Recurring item created",
                kind=counter,
                company_id=template.company_id,
                template_id=template.id,
                new_id=copy.id,
            )
        except Exception:
            # one broken template must not stop the rest of the run
            result.failed += 1
            logger.error(
                "Recurring item failed",
                kind=counter,
                template_id=template.id,
                exc_info=True,
            )


async def process_recurring_items(
    db: AsyncSession, today: Optional[date] = None
) -> RecurringRunResult:
    """Run one pass over every company's due recurring templates."""
    today = today or date.today()
    result = RecurringRunResult()
    await _process(db, Expense, today, _copy_expense, "expenses", result)
    await _process(db, Income, today, _copy_income, "income", result)
    await _process(
        db,
        Invoice,
        today,
        _copy_invoice,
        "invoices",
        result,
        options=(selectinload(Invoice.items),),
    )
    logger.info("Recurring run finished", today=today.isoformat(), **result.as_dict())
    return result
