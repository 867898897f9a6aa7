"""
services/company_service.py
---------------------------
The caller's own company. There is no cross-company listing: a user only
ever sees the tenant their session is bound to.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.logging import get_logger
from summit.models.company import Company
from summit.repositories.company import CompanyRepository
from summit.schemas.company import CompanyUpdate

logger = get_logger(__name__)


class CompanyService:

    @staticmethod
    async def get_current(db: AsyncSession, company_id: str) -> Company:
        return await CompanyRepository(db).get_current(company_id)

    @staticmethod
    async def update_current(
        db: AsyncSession, company_id: str, data: CompanyUpdate
    ) -> Company:
        values = data.model_dump(exclude_unset=True)
        if values.get("default_currency") is None:
            values.pop("default_currency", None)
        company = await CompanyRepository(db).update_current(company_id, **values)
        logger.info("Company updated", company_id=company_id)
        return company

    @staticmethod
    async def default_currency(db: AsyncSession, company_id: str) -> str:
        company = await CompanyRepository(db).get_current(company_id)
        return company.default_currency
