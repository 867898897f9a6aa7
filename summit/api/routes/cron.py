"""
api/routes/cron.py
------------------
POST /api/cron/process-recurring  — Materialise due recurring items.
GET  /api/cron/process-recurring  — Same, development only (405 otherwise).

Both require the `x-cron-api-key` header to match CRON_API_KEY. An external
scheduler calls this; running it twice for the same day creates nothing
new the second time.
"""

from typing import Annotated, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.config import settings
from summit.db.session import get_db
from summit.dependencies import verify_cron_key
from summit.services.recurring_service import process_recurring_items

router = APIRouter(prefix="/cron", tags=["Cron"])


async def development_only() -> None:
    if not settings.is_development:
        raise HTTPException(status_code=status.HTTP_405_METHOD_NOT_ALLOWED)


async def _run(db: AsyncSession) -> Dict[str, object]:
    result = await process_recurring_items(db)
    return {"success": True, "processed": result.as_dict()}


@router.post(
    "/process-recurring",
    dependencies=[Depends(verify_cron_key)],
    summary="Process recurring expenses, income and invoices",
)
async def process_recurring(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Dict[str, object]:
    return await _run(db)


@router.get(
    "/process-recurring",
    dependencies=[Depends(development_only), Depends(verify_cron_key)],
    summary="Process recurring items (development only)",
)
async def process_recurring_dev(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Dict[str, object]:
    return await _run(db)
