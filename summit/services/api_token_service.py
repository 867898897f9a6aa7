"""
services/api_token_service.py
-----------------------------
Issuing, listing, revoking and authenticating personal API tokens.

Only the `skt_xxxxxxxx` prefix is stored in clear. A presented token is
looked up by prefix among tokens that are neither revoked nor expired, and
its secret is then checked against the bcrypt hash.
"""

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.guard import Authorized
from summit.core.logging import get_logger
from summit.core.security import (
    generate_api_token_parts,
    hash_token_secret,
    parse_api_token,
    verify_token_secret,
)
from summit.db.base import as_utc, utcnow
from summit.models.access import ApiToken
from summit.models.user import User
from summit.repositories.access import ApiTokenRepository
from summit.repositories.company import UserRepository
from summit.schemas.access import ApiTokenCreate

logger = get_logger(__name__)


class ApiTokenService:

    @staticmethod
    async def list_tokens(db: AsyncSession, auth: Authorized) -> List[ApiToken]:
        return await ApiTokenRepository(db).list_active(auth.company_id, auth.user_id)

    @staticmethod
    async def create_token(
        db: AsyncSession, auth: Authorized, data: ApiTokenCreate
    ) -> Tuple[ApiToken, str]:
        """Returns the stored token and the full token string (shown once)."""
        parts = generate_api_token_parts()
        token = await ApiTokenRepository(db).create(
            auth.company_id,
            user_id=auth.user_id,
            name=data.name,
            token_prefix=parts.prefix,
            token_hash=hash_token_secret(parts.secret),
            expires_at=as_utc(data.expires_at),
        )
        logger.info(
            "API token created",
            company_id=auth.company_id,
            user_id=auth.user_id,
            token_prefix=parts.prefix,
        )
        return token, parts.full_token

    @staticmethod
    async def revoke_token(db: AsyncSession, auth: Authorized, token_id: str) -> None:
        token = await ApiTokenRepository(db).revoke(auth.company_id, auth.user_id, token_id)
        logger.info(
            "API token revoked",
            company_id=auth.company_id,
            token_prefix=token.token_prefix,
        )

    @staticmethod
    async def authenticate(db: AsyncSession, full_token: str) -> Optional[User]:
        """
        Resolve a presented API token to its owning, active user.
        Returns None for anything malformed, unknown, revoked, expired or
        belonging to a deleted user.
        """
        parsed = parse_api_token(full_token)
        if parsed is None:
            return None
        prefix, secret = parsed

        token = await ApiTokenRepository(db).find_usable_by_prefix(prefix)
        if token is None or not verify_token_secret(secret, token.token_hash):
            logger.warning("API token rejected", token_prefix=prefix)
            return None

        user = await UserRepository(db).find(token.company_id, token.user_id)
        if user is None:
            return None

        token.last_used_at = utcnow()
        await db.flush()
        return user
