"""
repositories/party.py
---------------------
Clients and vendors.
"""

from typing import List, Optional

from sqlalchemy import func, select

from summit.core.errors import Conflict
from summit.models.party import Client, Vendor
from summit.repositories.base import CompanyScopedRepository


class ClientRepository(CompanyScopedRepository[Client]):
    model = Client
    not_found_message = "Client not found"

    async def find_by_email(self, company_id: str, email: str) -> Optional[Client]:
        result = await self.db.execute(
            select(Client)
            .where(*self.scope(company_id), func.lower(Client.email) == email.lower())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def ensure_email_available(
        self, company_id: str, email: Optional[str], exclude_id: Optional[str] = None
    ) -> None:
        if not email:
            return
        existing = await self.find_by_email(company_id, email)
        if existing is not None and existing.id != exclude_id:
            raise Conflict("Client with this email already exists")

    async def find_for_portal(self, email: str) -> List[Client]:
        """
        Active clients with this email across all companies.

        Used only by the portal magic-link flow, where the caller is not yet
        bound to any tenant.
        """
        result = await self.db.execute(
            select(Client).where(
                func.lower(Client.email) == email.lower(),
                Client.soft_delete.is_(False),
            )
        )
        return list(result.scalars().all())

    async def find_for_portal_by_id(self, client_id: str) -> Optional[Client]:
        """Active client by id, for a portal session that already names it."""
        result = await self.db.execute(
            select(Client).where(Client.id == client_id, Client.soft_delete.is_(False))
        )
        return result.scalar_one_or_none()


class VendorRepository(CompanyScopedRepository[Vendor]):
    model = Vendor
    not_found_message = "Vendor not found"
