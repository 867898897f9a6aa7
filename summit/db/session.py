"""
db/session.py
-------------
Async engine, session factory and the request-scoped unit of work.

PostgreSQL (asyncpg) gets a sized pool with pre-ping and recycling. SQLite
(aiosqlite) is used for local runs and tests; foreign keys are switched on
per connection there so company deletes cascade the way they do on
PostgreSQL.

get_db yields one session per request and commits exactly once, after the
handler returns. Any exception rolls the whole request back, so a payment,
its ledger transaction and the account balance move together or not at all.
"""

from typing import Any, AsyncIterator, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from summit.core.config import settings


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def build_engine(url: str):
    options: Dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if not is_sqlite(url):
        options.update(pool_size=10, max_overflow=20, pool_recycle=3600)
    new_engine = create_async_engine(url, **options)

    if is_sqlite(url):
        @event.listens_for(new_engine.sync_engine, "connect")
        def _sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(settings.DATABASE_URL)

SessionFactory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    # Rows stay readable after commit; async sessions cannot lazy-refresh
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
