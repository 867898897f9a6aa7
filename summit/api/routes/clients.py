"""
api/routes/clients.py
---------------------
Client management.

GET    /api/clients        — Paginated list; ?search, ?order=asc|desc by name.
POST   /api/clients        — Create; 409 when the email is already used.
GET    /api/clients/{id}   — One client.
PUT    /api/clients/{id}   — Replace its details.
DELETE /api/clients/{id}   — Soft delete.
"""

from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import Pagination, get_pagination, require
from summit.schemas.common import Page, PageMeta, SuccessResponse
from summit.schemas.party import ClientCreate, ClientRead, ClientUpdate
from summit.services.party_service import ClientService

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get("", response_model=Page[ClientRead], summary="List clients")
async def list_clients(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.CLIENTS_VIEW))],
    paging: Annotated[Pagination, Depends(get_pagination)],
    order: Annotated[Literal["asc", "desc"], Query()] = "asc",
    search: Annotated[Optional[str], Query(max_length=255)] = None,
) -> Page[ClientRead]:
    clients, total = await ClientService.list_clients(
        db, auth.company_id, paging.page, paging.limit, order=order, search=search
    )
    return Page[ClientRead](
        data=[ClientRead.model_validate(c) for c in clients],
        meta=PageMeta.build(total, paging.page, paging.limit),
    )


@router.post(
    "",
    response_model=ClientRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a client",
)
async def create_client(
    body: ClientCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.CLIENTS_CREATE))],
) -> ClientRead:
    client = await ClientService.create_client(db, auth, body)
    return ClientRead.model_validate(client)


@router.get("/{client_id}", response_model=ClientRead, summary="Get a client")
async def get_client(
    client_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.CLIENTS_VIEW))],
) -> ClientRead:
    client = await ClientService.get_client(db, auth.company_id, client_id)
    return ClientRead.model_validate(client)


@router.put("/{client_id}", response_model=ClientRead, summary="Update a client")
async def update_client(
    client_id: str,
    body: ClientUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.CLIENTS_EDIT))],
) -> ClientRead:
    client = await ClientService.update_client(db, auth, client_id, body)
    return ClientRead.model_validate(client)


@router.delete("/{client_id}", response_model=SuccessResponse, summary="Delete a client")
async def delete_client(
    client_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.CLIENTS_DELETE))],
) -> SuccessResponse:
    await ClientService.delete_client(db, auth, client_id)
    return SuccessResponse(message="Client deleted successfully")
