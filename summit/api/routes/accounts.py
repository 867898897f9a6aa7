"""
api/routes/accounts.py
----------------------
Financial accounts and the transactions posted to them.

GET/POST       /api/accounts
GET/PUT/DELETE /api/accounts/{id}       — balances are not editable via PUT
GET/POST       /api/transactions        — posting moves the account balance
DELETE         /api/transactions/{id}   — reverses the balance movement
"""

from datetime import date
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import Pagination, get_pagination, require
from summit.schemas.common import Page, PageMeta, SuccessResponse
from summit.schemas.ledger import (
    AccountCreate,
    AccountRead,
    AccountUpdate,
    TransactionCreate,
    TransactionRead,
)
from summit.services.ledger_service import AccountService, TransactionService

router = APIRouter(prefix="/accounts", tags=["Accounts"])
transactions_router = APIRouter(prefix="/transactions", tags=["Transactions"])


# ── Accounts ──────────────────────────────────────────────────────────────────

@router.get("", response_model=List[AccountRead], summary="List accounts")
async def list_accounts(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.COMPANY_VIEW))],
) -> List[AccountRead]:
    accounts = await AccountService.list_accounts(db, auth.company_id)
    return [AccountRead.model_validate(a) for a in accounts]


@router.post(
    "",
    response_model=AccountRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def create_account(
    body: AccountCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_ACCOUNTS))],
) -> AccountRead:
    account = await AccountService.create_account(db, auth, body)
    return AccountRead.model_validate(account)


@router.get("/{account_id}", response_model=AccountRead, summary="Get an account")
async def get_account(
    account_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.COMPANY_VIEW))],
) -> AccountRead:
    account = await AccountService.get_account(db, auth.company_id, account_id)
    return AccountRead.model_validate(account)


@router.put("/{account_id}", response_model=AccountRead, summary="Update an account")
async def update_account(
    account_id: str,
    body: AccountUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_ACCOUNTS))],
) -> AccountRead:
    account = await AccountService.update_account(db, auth, account_id, body)
    return AccountRead.model_validate(account)


@router.delete("/{account_id}", response_model=SuccessResponse, summary="Delete an account")
async def delete_account(
    account_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_ACCOUNTS))],
) -> SuccessResponse:
    await AccountService.delete_account(db, auth, account_id)
    return SuccessResponse(message="Account deleted successfully")


# ── Transactions ──────────────────────────────────────────────────────────────

@transactions_router.get("", response_model=Page[TransactionRead], summary="List transactions")
async def list_transactions(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_ACCOUNTS))],
    paging: Annotated[Pagination, Depends(get_pagination)],
    account_id: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Page[TransactionRead]:
    rows, total = await TransactionService.list_transactions(
        db,
        auth.company_id,
        paging.page,
        paging.limit,
        account_id=account_id,
        start_date=start_date,
        end_date=end_date,
    )
    return Page[TransactionRead](
        data=[TransactionRead.model_validate(t) for t in rows],
        meta=PageMeta.build(total, paging.page, paging.limit),
    )


@transactions_router.post(
    "",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post a transaction",
)
async def create_transaction(
    body: TransactionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_ACCOUNTS))],
) -> TransactionRead:
    transaction = await TransactionService.create_transaction(db, auth, body)
    return TransactionRead.model_validate(transaction)


@transactions_router.delete(
    "/{transaction_id}",
    response_model=SuccessResponse,
    summary="Delete a transaction",
)
async def delete_transaction(
    transaction_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_ACCOUNTS))],
) -> SuccessResponse:
    await TransactionService.delete_transaction(db, auth, transaction_id)
    return SuccessResponse(message="Transaction deleted successfully")
