"""
api/routes/users.py
-------------------
Staff user management within the caller's company.

GET    /api/users        — Active users (users.view).
POST   /api/users        — Add a user with a role (users.invite).
PATCH  /api/users/{id}   — Change name / role (users.edit).
DELETE /api/users/{id}   — Soft delete; not yourself (users.delete).
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.permissions import Perm
from summit.db.session import get_db
from summit.dependencies import require
from summit.schemas.common import SuccessResponse
from summit.schemas.user import UserCreate, UserRead, UserUpdate
from summit.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserRead], summary="List users of the company")
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.USERS_VIEW))],
) -> List[UserRead]:
    users = await UserService.list_users(db, auth.company_id)
    return [UserRead.model_validate(u) for u in users]


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add a user to the company",
)
async def create_user(
    body: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.USERS_INVITE))],
) -> UserRead:
    """
    The new user joins the caller's company; the company is taken from the
    session, never from the request body.
    """
    user = await UserService.create_user(db, auth, body)
    return UserRead.model_validate(user)


@router.patch("/{user_id}", response_model=UserRead, summary="Update a user")
async def update_user(
    user_id: str,
    body: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.USERS_EDIT))],
) -> UserRead:
    user = await UserService.update_user(db, auth, user_id, body)
    return UserRead.model_validate(user)


@router.delete("/{user_id}", response_model=SuccessResponse, summary="Delete a user")
async def delete_user(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    auth: Annotated[Authorized, Depends(require(Perm.USERS_DELETE))],
) -> SuccessResponse:
    await UserService.delete_user(db, auth, user_id)
    return SuccessResponse(message="User deleted successfully")
