"""
dependencies.py
---------------
FastAPI dependency injection functions for authentication and authorisation.

Flow:
  1. The bearer credential comes from the Authorization header, falling back
     to the staff session cookie.
  2. `skt_...` credentials are API tokens (prefix lookup + bcrypt check);
     anything else is decoded as a staff session JWT. A bad API token does
     not fall through to JWT decoding.
  3. resolve_user re-loads the user from the DB, scoped by the company in
     the credential, so deleted or moved users are rejected.
  4. require(permission) runs the guard and either hands the route an
     Authorized context or raises 401/403 before any data access.

The company_id in Authorized is what every repository call is scoped by.
"""

import secrets
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated, Optional, Tuple

from fastapi import Depends, Header, Query, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.config import settings
from summit.core.errors import Unauthenticated, Unauthorized
from summit.core.guard import Authorized, DenialReason, Identity, authorize
from summit.core.logging import bind_tenant_context, get_logger
from summit.core.security import API_TOKEN_PREFIX, decode_access_token, decode_client_token
from summit.db.session import get_db
from summit.models.access import ClientUser
from summit.models.party import Client
from summit.models.user import User
from summit.repositories.company import UserRepository
from summit.services.api_token_service import ApiTokenService
from summit.services.mail_service import Mailer
from summit.services.portal_service import PortalService
from summit.services.storage_service import ObjectStorage

logger = get_logger(__name__)

# tokenUrl must match the login endpoint path
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ── Staff identity ────────────────────────────────────────────────────────────

async def resolve_user(
    request: Request,
    bearer: Annotated[Optional[str], Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[User]:
    """The calling staff user, or None when there is no valid session."""
    credential = bearer or request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not credential:
        return None

    if credential.startswith(API_TOKEN_PREFIX):
        return await ApiTokenService.authenticate(db, credential)

    try:
        payload = decode_access_token(credential)
    except JWTError as exc:
        logger.warning("JWT decode failed", error=str(exc))
        return None

    user_id = payload.get("sub")
    company_id = payload.get("company_id")
    if not user_id or not company_id:
        return None

    # Always re-verify against DB so deleted users are rejected
    user = await UserRepository(db).find(company_id, user_id)
    if user is None:
        logger.warning("User from valid JWT not found in DB", user_id=user_id)
    return user


async def resolve_identity(
    user: Annotated[Optional[User], Depends(resolve_user)],
) -> Optional[Identity]:
    if user is None:
        return None
    return Identity.for_role(user_id=user.id, company_id=user.company_id, role=user.role)


async def get_current_user(
    user: Annotated[Optional[User], Depends(resolve_user)],
) -> User:
    if user is None:
        raise Unauthenticated()
    return user


def require(permission: Optional[str] = None):
    """
    Dependency factory running the tenant-scoping guard.

        auth: Annotated[Authorized, Depends(require(Perm.CLIENTS_VIEW))]
    """

    async def dependency(
        identity: Annotated[Optional[Identity], Depends(resolve_identity)],
    ) -> Authorized:
        decision = authorize(identity, permission)
        if isinstance(decision, Authorized):
            bind_tenant_context(decision.company_id, decision.user_id)
            return decision
        if decision.reason == DenialReason.MISSING_PERMISSION:
            logger.info(
                "Permission denied",
                user_id=identity.user_id if identity else None,
                permission=decision.key,
            )
            raise Unauthorized(f"Missing permission: {decision.key}")
        raise Unauthenticated()

    return dependency


# ── Pagination ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int


async def get_pagination(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> Pagination:
    return Pagination(page=page, limit=limit)


# ── Client portal ─────────────────────────────────────────────────────────────

async def resolve_portal_session(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Optional[Tuple[ClientUser, Client]]:
    token = request.cookies.get(settings.CLIENT_COOKIE_NAME)
    if not token:
        return None
    try:
        claims = decode_client_token(token)
    except JWTError as exc:
        logger.warning("Portal token decode failed", error=str(exc))
        return None
    return await PortalService.resolve_session(db, claims)


async def get_portal_client(
    session: Annotated[Optional[Tuple[ClientUser, Client]], Depends(resolve_portal_session)],
) -> Client:
    if session is None:
        raise Unauthenticated()
    return session[1]


# ── Cron ──────────────────────────────────────────────────────────────────────

async def verify_cron_key(
    x_cron_api_key: Annotated[Optional[str], Header()] = None,
) -> None:
    if not settings.CRON_API_KEY or not secrets.compare_digest(
        x_cron_api_key or "", settings.CRON_API_KEY
    ):
        raise Unauthenticated()


# ── Integrations ──────────────────────────────────────────────────────────────

@lru_cache()
def get_storage() -> ObjectStorage:
    return ObjectStorage()


def get_mailer() -> Mailer:
    return Mailer()
