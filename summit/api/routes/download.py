"""
api/routes/download.py
----------------------
GET /api/download/company-logo?fileName=<key>

Returns a short-lived presigned URL for the company's logo. The object key
must live under `<company_id>/logos/`; any other key is refused with 403
so one company cannot fetch another's files.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from summit.core.errors import Unauthorized, ValidationFailed
from summit.core.guard import Authorized
from summit.core.logging import get_logger
from summit.core.permissions import Perm
from summit.dependencies import get_storage, require
from summit.services.storage_service import ObjectStorage, company_logo_prefix

logger = get_logger(__name__)

router = APIRouter(prefix="/download", tags=["Download"])


class DownloadUrl(BaseModel):
    url: str


@router.get("/company-logo", response_model=DownloadUrl, summary="Presigned logo URL")
async def company_logo(
    auth: Annotated[Authorized, Depends(require(Perm.COMPANY_VIEW))],
    storage: Annotated[ObjectStorage, Depends(get_storage)],
    file_name: Annotated[Optional[str], Query(alias="fileName")] = None,
) -> DownloadUrl:
    if not file_name:
        raise ValidationFailed.for_field("fileName", "File name is required")
    if not file_name.startswith(company_logo_prefix(auth.company_id)):
        logger.warning(
            "Logo download outside company prefix",
            company_id=auth.company_id,
            user_id=auth.user_id,
        )
        raise Unauthorized("Access denied")
    return DownloadUrl(url=storage.presigned_get_url(file_name))
