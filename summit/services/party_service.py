"""
services/party_service.py
-------------------------
Clients and vendors of a company.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.logging import get_logger
from summit.models.party import Client, Vendor
from summit.repositories.party import ClientRepository, VendorRepository
from summit.schemas.party import ClientCreate, ClientUpdate, VendorCreate, VendorUpdate

logger = get_logger(__name__)


def _search_filter(search: Optional[str], *columns):
    if not search:
        return None
    pattern = f"%{search.lower()}%"
    return or_(*(func.lower(column).like(pattern) for column in columns))


class ClientService:

    @staticmethod
    async def list_clients(
        db: AsyncSession,
        company_id: str,
        page: int,
        limit: int,
        order: str = "asc",
        search: Optional[str] = None,
    ) -> Tuple[List[Client], int]:
        repo = ClientRepository(db)
        filters = []
        condition = _search_filter(search, Client.name, Client.email)
        if condition is not None:
            filters.append(condition)
        order_by = Client.name.desc() if order == "desc" else Client.name.asc()
        total = await repo.count(company_id, *filters)
        rows = await repo.list(
            company_id,
            *filters,
            order_by=(order_by, Client.id),
            limit=limit,
            offset=(page - 1) * limit,
        )
        return rows, total

    @staticmethod
    async def get_client(db: AsyncSession, company_id: str, client_id: str) -> Client:
        return await ClientRepository(db).get(company_id, client_id)

    @staticmethod
    async def create_client(db: AsyncSession, auth: Authorized, data: ClientCreate) -> Client:
        repo = ClientRepository(db)
        await repo.ensure_email_available(auth.company_id, data.email)
        client = await repo.create(auth.company_id, **data.model_dump())
        logger.info("Client created", company_id=auth.company_id, client_id=client.id)
        return client

    @staticmethod
    async def update_client(
        db: AsyncSession, auth: Authorized, client_id: str, data: ClientUpdate
    ) -> Client:
        repo = ClientRepository(db)
        await repo.get(auth.company_id, client_id)
        await repo.ensure_email_available(auth.company_id, data.email, exclude_id=client_id)
        client = await repo.update(auth.company_id, client_id, **data.model_dump())
        logger.info("Client updated", company_id=auth.company_id, client_id=client_id)
        return client

    @staticmethod
    async def delete_client(db: AsyncSession, auth: Authorized, client_id: str) -> None:
        await ClientRepository(db).soft_delete(auth.company_id, client_id)
        logger.info("Client deleted", company_id=auth.company_id, client_id=client_id)


class VendorService:

    @staticmethod
    async def list_vendors(
        db: AsyncSession,
        company_id: str,
        page: int,
        limit: int,
        search: Optional[str] = None,
    ) -> Tuple[List[Vendor], int]:
        repo = VendorRepository(db)
        filters = []
        condition = _search_filter(search, Vendor.name, Vendor.contact_name, Vendor.email)
        if condition is not None:
            filters.append(condition)
        total = await repo.count(company_id, *filters)
        rows = await repo.list(
            company_id,
            *filters,
            order_by=(Vendor.name, Vendor.id),
            limit=limit,
            offset=(page - 1) * limit,
        )
        return rows, total

    @staticmethod
    async def get_vendor(db: AsyncSession, company_id: str, vendor_id: str) -> Vendor:
        return await VendorRepository(db).get(company_id, vendor_id)

    @staticmethod
    async def create_vendor(db: AsyncSession, auth: Authorized, data: VendorCreate) -> Vendor:
        vendor = await VendorRepository(db).create(auth.company_id, **data.model_dump())
        logger.info("Vendor created", company_id=auth.company_id, vendor_id=vendor.id)
        return vendor

    @staticmethod
    async def update_vendor(
        db: AsyncSession, auth: Authorized, vendor_id: str, data: VendorUpdate
    ) -> Vendor:
        return await VendorRepository(db).update(
            auth.company_id, vendor_id, **data.model_dump()
        )

    @staticmethod
    async def delete_vendor(db: AsyncSession, auth: Authorized, vendor_id: str) -> None:
        await VendorRepository(db).soft_delete(auth.company_id, vendor_id)
        logger.info("Vendor deleted", company_id=auth.company_id, vendor_id=vendor_id)
