"""
services/ledger_service.py
--------------------------
Financial accounts, ledger transactions, and invoice payments.

Consistency model:
  - The request session is the unit of work (db/session.get_db), so every
    compound write below either lands completely or not at all.
  - Balances move only through AccountRepository.adjust_balance, a relative
    SQL UPDATE, keeping

        current_balance == initial_balance + sum(credits) - sum(debits)

    over the account's live transactions without read-modify-write races.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.errors import Conflict
from summit.core.guard import Authorized
from summit.core.logging import get_logger
from summit.db.base import utcnow
from summit.models.invoice import (
    OPEN_INVOICE_STATUSES,
    InvoiceStatus,
    Payment,
    PaymentStatus,
)
from summit.models.ledger import Account, Transaction, TransactionType
from summit.repositories.invoice import InvoiceRepository, PaymentRepository
from summit.repositories.ledger import AccountRepository, TransactionRepository
from summit.schemas.invoice import PaymentCreate
from summit.schemas.ledger import AccountCreate, AccountUpdate, TransactionCreate
from summit.services.bookkeeping_service import ensure_reference
from summit.services.company_service import CompanyService

logger = get_logger(__name__)


def signed_amount(transaction_type: str, amount: Decimal) -> Decimal:
    """Effect of a transaction on its account balance."""
    return amount if transaction_type == TransactionType.credit.value else -amount


# ── Accounts ──────────────────────────────────────────────────────────────────

class AccountService:

    @staticmethod
    async def list_accounts(db: AsyncSession, company_id: str) -> List[Account]:
        return await AccountRepository(db).list(company_id, order_by=(Account.name,))

    @staticmethod
    async def get_account(db: AsyncSession, company_id: str, account_id: str) -> Account:
        return await AccountRepository(db).get(company_id, account_id)

    @staticmethod
    async def create_account(db: AsyncSession, auth: Authorized, data: AccountCreate) -> Account:
        account = await AccountRepository(db).create(
            auth.company_id,
            name=data.name,
            type=data.type.value,
            currency=data.currency
            or await CompanyService.default_currency(db, auth.company_id),
            account_number=data.account_number,
            initial_balance=data.initial_balance,
            current_balance=data.initial_balance,
        )
        logger.info("Account created", company_id=auth.company_id, account_id=account.id)
        return account

    @staticmethod
    async def update_account(
        db: AsyncSession, auth: Authorized, account_id: str, data: AccountUpdate
    ) -> Account:
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        if "type" in values:
            values["type"] = data.type.value
        return await AccountRepository(db).update(auth.company_id, account_id, **values)

    @staticmethod
    async def delete_account(db: AsyncSession, auth: Authorized, account_id: str) -> None:
        await AccountRepository(db).soft_delete(auth.company_id, account_id)
        logger.info("Account deleted", company_id=auth.company_id, account_id=account_id)


# ── Transactions ──────────────────────────────────────────────────────────────

class TransactionService:

    @staticmethod
    async def list_transactions(
        db: AsyncSession,
        company_id: str,
        page: int,
        limit: int,
        account_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Tuple[List[Transaction], int]:
        filters = []
        if account_id:
            filters.append(Transaction.account_id == account_id)
        if start_date:
            filters.append(Transaction.transaction_date >= start_date)
        if end_date:
            filters.append(Transaction.transaction_date <= end_date)
        repo = TransactionRepository(db)
        total = await repo.count(company_id, *filters)
        rows = await repo.list(
            company_id,
            *filters,
            order_by=(Transaction.transaction_date.desc(), Transaction.created_at.desc()),
            limit=limit,
            offset=(page - 1) * limit,
        )
        return rows, total

    @staticmethod
    async def post(
        db: AsyncSession, company_id: str, account: Account, **values
    ) -> Transaction:
        """Insert a transaction and move the account balance by its signed amount."""
        transaction = await TransactionRepository(db).create(
            company_id, account_id=account.id, currency=account.currency, **values
        )
        await AccountRepository(db).adjust_balance(
            company_id, account.id, signed_amount(transaction.type, transaction.amount)
        )
        return transaction

    @staticmethod
    async def create_transaction(
        db: AsyncSession, auth: Authorized, data: TransactionCreate
    ) -> Transaction:
        await ensure_reference(db, AccountRepository, auth.company_id, "account_id", data.account_id)
        await ensure_reference(
            db, InvoiceRepository, auth.company_id, "related_invoice_id", data.related_invoice_id
        )
        account = await AccountRepository(db).get(auth.company_id, data.account_id)
        values = data.model_dump(exclude={"account_id"})
        values["type"] = data.type.value
        transaction = await TransactionService.post(db, auth.company_id, account, **values)
        logger.info(
            "Transaction posted",
            company_id=auth.company_id,
            transaction_id=transaction.id,
            account_id=account.id,
            type=transaction.type,
        )
        return transaction

    @staticmethod
    async def delete_transaction(db: AsyncSession, auth: Authorized, transaction_id: str) -> None:
        """
        Soft delete and reverse the transaction's effect on its account.

        A transaction that settles a recorded payment stays; the payment
        would otherwise count towards the invoice with no money behind it.
        """
        if await PaymentRepository(db).linked_to_transaction(auth.company_id, transaction_id):
            raise Conflict("Transaction is linked to a payment and cannot be deleted")
        transaction = await TransactionRepository(db).soft_delete(auth.company_id, transaction_id)
        await AccountRepository(db).adjust_balance(
            auth.company_id,
            transaction.account_id,
            -signed_amount(transaction.type, transaction.amount),
        )
        logger.info(
            "Transaction deleted",
            company_id=auth.company_id,
            transaction_id=transaction_id,
        )


# ── Payments ──────────────────────────────────────────────────────────────────

class PaymentService:

    @staticmethod
    async def list_payments(db: AsyncSession, company_id: str, invoice_id: str) -> List[Payment]:
        await InvoiceRepository(db).get(company_id, invoice_id)
        return await PaymentRepository(db).list_for_invoice(company_id, invoice_id)

    @staticmethod
    async def record_payment(
        db: AsyncSession, auth: Authorized, invoice_id: str, data: PaymentCreate
    ) -> Payment:
        """
        Record a completed payment against an open invoice.

        With account_id, a credit transaction is posted to that account and
        linked to the payment. When the unpaid remainder reaches zero the
        invoice becomes paid. All of it commits together or not at all.
        """
        company_id = auth.company_id
        # concurrent payments on one invoice queue on this lock
        invoice = await InvoiceRepository(db).get(company_id, invoice_id, for_update=True)
        if invoice.status not in OPEN_INVOICE_STATUSES:
            raise Conflict(f"Cannot record a payment on a {invoice.status} invoice")

        payments = PaymentRepository(db)
        remainder = invoice.total - await payments.paid_amount(company_id, invoice.id)
        if data.amount > remainder:
            raise Conflict(f"Payment exceeds the unpaid amount of {remainder}")

        transaction_id = None
        if data.account_id is not None:
            await ensure_reference(db, AccountRepository, company_id, "account_id", data.account_id)
            account = await AccountRepository(db).get(company_id, data.account_id)
            transaction = await TransactionService.post(
                db,
                company_id,
                account,
                type=TransactionType.credit.value,
                description=f"Payment for invoice {invoice.invoice_number}",
                amount=data.amount,
                transaction_date=data.payment_date,
                related_invoice_id=invoice.id,
            )
            transaction_id = transaction.id

        payment = await payments.create(
            company_id,
            invoice_id=invoice.id,
            client_id=invoice.client_id,
            amount=data.amount,
            currency=invoice.currency,
            payment_date=data.payment_date,
            payment_method=data.payment_method.value,
            transaction_id=transaction_id,
            payment_processor_reference=data.payment_processor_reference,
            status=PaymentStatus.completed.value,
            notes=data.notes,
        )

        if data.amount == remainder:
            invoice.status = InvoiceStatus.paid.value
            invoice.paid_at = utcnow()
            await payments.flush()

        logger.info(
            "Payment recorded",
            company_id=company_id,
            invoice_id=invoice.id,
            payment_id=payment.id,
            invoice_status=invoice.status,
        )
        return payment
