"""
api/routes/vendors.py
---------------------
Vendors: readable by any member of the company, managed by whoever may
manage expenses.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import Pagination, get_pagination, require
from summit.schemas.common import Page, PageMeta, SuccessResponse
from summit.schemas.party import VendorCreate, VendorRead, VendorUpdate
from summit.services.party_service import VendorService

router = APIRouter(prefix="/vendors", tags=["Vendors"])


@router.get("", response_model=Page[VendorRead], summary="List vendors")
async def list_vendors(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.COMPANY_VIEW))],
    paging: Annotated[Pagination, Depends(get_pagination)],
    search: Annotated[Optional[str], Query(max_length=255)] = None,
) -> Page[VendorRead]:
    vendors, total = await VendorService.list_vendors(
        db, auth.company_id, paging.page, paging.limit, search=search
    )
    return Page[VendorRead](
        data=[VendorRead.model_validate(v) for v in vendors],
        meta=PageMeta.build(total, paging.page, paging.limit),
    )


@router.post(
    "",
    response_model=VendorRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a vendor",
)
async def create_vendor(
    body: VendorCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> VendorRead:
    vendor = await VendorService.create_vendor(db, auth, body)
    return VendorRead.model_validate(vendor)


@router.get("/{vendor_id}", response_model=VendorRead, summary="Get a vendor")
async def get_vendor(
    vendor_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.COMPANY_VIEW))],
) -> VendorRead:
    vendor = await VendorService.get_vendor(db, auth.company_id, vendor_id)
    return VendorRead.model_validate(vendor)


@router.put("/{vendor_id}", response_model=VendorRead, summary="Update a vendor")
async def update_vendor(
    vendor_id: str,
    body: VendorUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> VendorRead:
    vendor = await VendorService.update_vendor(db, auth, vendor_id, body)
    return VendorRead.model_validate(vendor)


@router.delete("/{vendor_id}", response_model=SuccessResponse, summary="Delete a vendor")
async def delete_vendor(
    vendor_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.FINANCE_MANAGE_EXPENSES))],
) -> SuccessResponse:
    await VendorService.delete_vendor(db, auth, vendor_id)
    return SuccessResponse(message="Vendor deleted successfully")
