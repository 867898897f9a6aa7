"""
repositories/company.py
-----------------------
Companies and their staff users.

Login and registration look users up by email before any tenant is known;
those are the only unscoped user queries and they are named as such.
"""

from typing import Any, List, Optional

from sqlalchemy import select

from summit.core.errors import NotFound
from summit.models.company import Company
from summit.models.user import User
from summit.repositories.base import CompanyScopedRepository


class CompanyRepository(CompanyScopedRepository[Company]):
    model = Company
    not_found_message = "Company not found"

    def scope(self, company_id: str, include_deleted: bool = False) -> List[Any]:
        conditions = [Company.id == company_id]
        if not include_deleted:
            conditions.append(Company.soft_delete.is_(False))
        return conditions

    async def get_current(self, company_id: str) -> Company:
        result = await self.db.execute(select(Company).where(*self.scope(company_id)))
        company = result.scalar_one_or_none()
        if company is None:
            raise NotFound(self.not_found_message)
        return company

    async def update_current(self, company_id: str, **values: Any) -> Company:
        company = await self.get_current(company_id)
        for key, value in values.items():
            setattr(company, key, value)
        await self.flush()
        return company

    async def register(self, name: str, **values: Any) -> Company:
        """Create a new tenant. The only write that is not company-scoped."""
        company = Company(name=name, **values)
        self.db.add(company)
        await self.flush()
        return company


class UserRepository(CompanyScopedRepository[User]):
    model = User
    not_found_message = "User not found"
    conflict_message = "Email is already registered"

    async def list_active(self, company_id: str) -> List[User]:
        """Active users of the company; soft-deleted users are excluded."""
        return await self.list(company_id, order_by=(User.created_at, User.email))

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()
