"""
api/routes/auth.py
------------------
Staff authentication endpoints.

POST /api/auth/register       — Public signup: new company + admin user.
POST /api/auth/login          — Exchange credentials for a session JWT.
                                Also sets the HTTP-only session cookie.
GET  /api/auth/me             — The authenticated user and permission map.
POST /api/auth/clear-session  — Expire the session cookie.
"""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.config import settings
from summit.core.errors import Unauthenticated
from summit.core.permissions import permissions_for_role
from summit.core.security import create_access_token
from summit.db.session import get_db
from summit.dependencies import get_current_user
from summit.models.user import User
from summit.schemas.common import SuccessResponse
from summit.schemas.user import MeResponse, RegisterRequest, TokenResponse, UserRead
from summit.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])

# cookie names used by earlier session implementations; cleared on logout
LEGACY_SESSION_COOKIES = ("next-auth.session-token", "__Secure-next-auth.session-token")


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a company and its first admin",
)
async def register(
    body: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserRead:
    user = await UserService.register(db, body)
    return UserRead.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login and receive a session token",
)
async def login(
    # The "username" field of the OAuth2 form contains the email address.
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """
    OAuth2 password form: username is the email address. The JWT is
    returned in the body for API clients and set as an HttpOnly cookie for
    the browser app.
    """
    user = await UserService.authenticate(db, form_data.username, form_data.password)
    if user is None:
        raise Unauthenticated("Invalid email or password")

    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(
        subject=user.id,
        company_id=user.company_id,
        role=user.role,
        expires_delta=expires,
    )
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=int(expires.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        path="/",
    )
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        expires_in=int(expires.total_seconds()),
        user=UserRead.model_validate(user),
    )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get the currently authenticated user",
)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> MeResponse:
    return MeResponse(
        user=UserRead.model_validate(current_user),
        permissions=permissions_for_role(current_user.role),
    )


@router.post(
    "/clear-session",
    response_model=SuccessResponse,
    summary="Clear the session cookie",
)
async def clear_session(response: Response) -> SuccessResponse:
    for name in (settings.SESSION_COOKIE_NAME, *LEGACY_SESSION_COOKIES):
        response.delete_cookie(name, path="/")
    return SuccessResponse(message="Session cleared")
