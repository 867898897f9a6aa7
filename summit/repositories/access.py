"""
repositories/access.py
----------------------
API tokens and client-portal login state.

Token-by-prefix lookup runs before the caller's tenant is known (it is how
the tenant is learned), so it is deliberately unscoped; everything a user
does with their own tokens is scoped by company *and* user.
"""

from typing import List, Optional

from sqlalchemy import or_, select, update

from summit.core.errors import NotFound
from summit.db.base import utcnow
from summit.models.access import ApiToken, ClientLoginToken, ClientUser
from summit.repositories.base import CompanyScopedRepository


class ApiTokenRepository(CompanyScopedRepository[ApiToken]):
    model = ApiToken
    not_found_message = "API token not found or already revoked"
    conflict_message = "Failed to generate a unique token prefix. Please try again."

    async def list_active(self, company_id: str, user_id: str) -> List[ApiToken]:
        return await self.list(
            company_id,
            ApiToken.user_id == user_id,
            ApiToken.revoked_at.is_(None),
            order_by=(ApiToken.created_at.desc(),),
        )

    async def revoke(self, company_id: str, user_id: str, token_id: str) -> ApiToken:
        result = await self.db.execute(
            select(ApiToken).where(
                ApiToken.id == token_id,
                ApiToken.user_id == user_id,
                ApiToken.revoked_at.is_(None),
                *self.scope(company_id),
            )
        )
        token = result.scalar_one_or_none()
        if token is None:
            raise NotFound(self.not_found_message)
        token.revoked_at = utcnow()
        await self.flush()
        return token

    async def find_usable_by_prefix(self, prefix: str) -> Optional[ApiToken]:
        result = await self.db.execute(
            select(ApiToken).where(
                ApiToken.token_prefix == prefix,
                ApiToken.revoked_at.is_(None),
                or_(ApiToken.expires_at.is_(None), ApiToken.expires_at > utcnow()),
            )
        )
        return result.scalar_one_or_none()


class PortalRepository:
    """Portal identities. Scoped by client, which is itself company-scoped."""

    def __init__(self, db) -> None:
        self.db = db

    async def add_login_token(self, login_token: ClientLoginToken) -> ClientLoginToken:
        self.db.add(login_token)
        await self.db.flush()
        return login_token

    async def find_login_token(self, token: str) -> Optional[ClientLoginToken]:
        result = await self.db.execute(
            select(ClientLoginToken).where(ClientLoginToken.token == token)
        )
        return result.scalar_one_or_none()

    async def consume_login_token(self, login_token_id: str) -> bool:
        """Mark a login token used. False if another request got there first."""
        result = await self.db.execute(
            update(ClientLoginToken)
            .where(
                ClientLoginToken.id == login_token_id,
                ClientLoginToken.used_at.is_(None),
            )
            .values(used_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def find_client_user(self, client_id: str, email: str) -> Optional[ClientUser]:
        result = await self.db.execute(
            select(ClientUser).where(
                ClientUser.client_id == client_id,
                ClientUser.email == email.lower(),
                ClientUser.soft_delete.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def get_client_user(self, client_user_id: str) -> Optional[ClientUser]:
        result = await self.db.execute(
            select(ClientUser).where(
                ClientUser.id == client_user_id,
                ClientUser.soft_delete.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def add_client_user(self, client_user: ClientUser) -> ClientUser:
        self.db.add(client_user)
        await self.db.flush()
        return client_user
