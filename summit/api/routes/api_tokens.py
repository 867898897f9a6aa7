"""
api/routes/api_tokens.py
------------------------
Personal API tokens of the calling user.

GET    /api/api-tokens        — Active tokens (prefix and metadata only).
POST   /api/api-tokens        — Issue one; the full token is returned once.
DELETE /api/api-tokens/{id}   — Revoke.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.db.session import get_db
from summit.dependencies import require
from summit.schemas.access import ApiTokenCreate, ApiTokenCreated, ApiTokenRead
from summit.schemas.common import SuccessResponse
from summit.services.api_token_service import ApiTokenService

router = APIRouter(prefix="/api-tokens", tags=["API tokens"])


@router.get("", response_model=List[ApiTokenRead], summary="List your API tokens")
async def list_tokens(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require())],
) -> List[ApiTokenRead]:
    tokens = await ApiTokenService.list_tokens(db, auth)
    return [ApiTokenRead.model_validate(t) for t in tokens]


@router.post(
    "",
    response_model=ApiTokenCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create an API token",
)
async def create_token(
    body: ApiTokenCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require())],
) -> ApiTokenCreated:
    """Store the returned full_token now: it cannot be retrieved again."""
    token, full_token = await ApiTokenService.create_token(db, auth, body)
    return ApiTokenCreated(
        **ApiTokenRead.model_validate(token).model_dump(),
        full_token=full_token,
    )


@router.delete("/{token_id}", response_model=SuccessResponse, summary="Revoke an API token")
async def revoke_token(
    token_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require())],
) -> SuccessResponse:
    await ApiTokenService.revoke_token(db, auth, token_id)
    return SuccessResponse(message="API token revoked successfully")
