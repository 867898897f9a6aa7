"""
create_tables.py
----------------
Create (or, with --drop, recreate) the Summit Finance schema from the ORM
metadata. Meant for local SQLite and fresh development databases; managed
environments apply migrations instead.

Usage:
    python create_tables.py [--drop]
"""

import argparse
import asyncio

from summit.core.config import settings
from summit.core.logging import configure_logging, get_logger
from summit.db.session import build_engine
from summit.models import Base  # registers every table on Base.metadata

logger = get_logger(__name__)


async def create_all_tables(drop: bool = False) -> None:
    engine = build_engine(settings.DATABASE_URL)
    try:
        async with engine.begin() as conn:
            if drop:
                await conn.run_sync(Base.metadata.drop_all)
                logger.warning("Dropped existing tables")
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()
    logger.info("Schema ready", tables=sorted(Base.metadata.tables))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the Summit Finance tables.")
    parser.add_argument("--drop", action="store_true", help="drop all tables first")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(create_all_tables(drop=args.drop))
