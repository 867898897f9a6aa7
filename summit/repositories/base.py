"""
repositories/base.py
--------------------
Company-scoped data access.

Every public method takes `company_id` as its first argument and folds it
into the WHERE clause, so a query that forgets the tenant cannot be
written through this interface. Rows of another company are reported
exactly like absent rows (NotFound with the same message) to prevent
tenant enumeration.

Repositories never commit: the request-scoped session in db/session.py is
the unit of work.
"""

from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.errors import Conflict, NotFound
from summit.core.logging import get_logger
from summit.db.base import Base

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class CompanyScopedRepository(Generic[ModelT]):
    model: Type[ModelT]
    not_found_message: str = "Not found"
    conflict_message: str = "Record already exists"

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ── Query helpers ────────────────────────────────────────────────────

    def scope(self, company_id: str, include_deleted: bool = False) -> List[Any]:
        conditions = [self.model.company_id == company_id]
        if not include_deleted and hasattr(self.model, "soft_delete"):
            conditions.append(self.model.soft_delete.is_(False))
        return conditions

    async def flush(self) -> None:
        """Flush pending writes, translating constraint violations to Conflict."""
        try:
            await self.db.flush()
        except IntegrityError as exc:
            logger.warning(
                "Constraint violation",
                table=self.model.__tablename__,
                error=str(exc.orig),
            )
            raise Conflict(self.conflict_message) from exc

    # ── Reads ────────────────────────────────────────────────────────────

    async def list(
        self,
        company_id: str,
        *filters: Any,
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        include_deleted: bool = False,
        options: Sequence[Any] = (),
    ) -> List[ModelT]:
        stmt = select(self.model).where(
            *self.scope(company_id, include_deleted), *filters
        )
        if options:
            stmt = stmt.options(*options)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(
        self, company_id: str, *filters: Any, include_deleted: bool = False
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(self.model)
            .where(*self.scope(company_id, include_deleted), *filters)
        )
        return int((await self.db.execute(stmt)).scalar_one())

    def by_id(
        self,
        company_id: str,
        id: str,
        include_deleted: bool = False,
        options: Sequence[Any] = (),
        for_update: bool = False,
    ):
        stmt = select(self.model).where(
            self.model.id == id, *self.scope(company_id, include_deleted)
        )
        if options:
            stmt = stmt.options(*options)
        if for_update:
            # row lock until commit; not emitted on SQLite
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return stmt

    async def find(
        self,
        company_id: str,
        id: str,
        include_deleted: bool = False,
        options: Sequence[Any] = (),
        for_update: bool = False,
    ) -> Optional[ModelT]:
        result = await self.db.execute(
            self.by_id(company_id, id, include_deleted, options, for_update)
        )
        return result.scalar_one_or_none()

    async def get(
        self,
        company_id: str,
        id: str,
        include_deleted: bool = False,
        options: Sequence[Any] = (),
        for_update: bool = False,
    ) -> ModelT:
        obj = await self.find(
            company_id, id, include_deleted=include_deleted, options=options, for_update=for_update
        )
        if obj is None:
            raise NotFound(self.not_found_message)
        return obj

    # ── Writes ───────────────────────────────────────────────────────────

    async def create(self, company_id: str, **values: Any) -> ModelT:
        values.pop("company_id", None)
        obj = self.model(company_id=company_id, **values)
        self.db.add(obj)
        await self.flush()
        return obj

    async def update(self, company_id: str, id: str, **values: Any) -> ModelT:
        obj = await self.get(company_id, id)
        values.pop("company_id", None)
        for key, value in values.items():
            setattr(obj, key, value)
        await self.flush()
        return obj

    async def soft_delete(self, company_id: str, id: str) -> ModelT:
        obj = await self.get(company_id, id)
        obj.soft_delete = True
        await self.flush()
        return obj

    async def hard_delete(self, company_id: str, id: str) -> None:
        obj = await self.get(company_id, id)
        await self.db.delete(obj)
        await self.flush()
