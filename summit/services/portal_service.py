"""
services/portal_service.py
--------------------------
Client portal: magic-link sign-in and the client's view of its invoices.

A portal session is bound to one Client row (and therefore one company).
Portal identities never receive staff permissions; every query here is
scoped by the client id carried in the verified portal token.
"""

from datetime import timedelta
from html import escape
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from summit.core.config import settings
from summit.core.errors import NotFound, ValidationFailed
from summit.core.logging import get_logger
from summit.core.security import create_client_token, generate_login_token
from summit.db.base import as_utc, utcnow
from summit.models.access import ClientLoginToken, ClientUser
from summit.models.invoice import Invoice, InvoiceStatus
from summit.models.party import Client
from summit.repositories.access import PortalRepository
from summit.repositories.invoice import InvoiceRepository
from summit.repositories.party import ClientRepository
from summit.services.mail_service import Mailer

logger = get_logger(__name__)

MAGIC_LINK_MESSAGE = "If you exist as a client, a magic link has been sent to your email"
INVALID_LINK_MESSAGE = "Invalid or expired login link"


def magic_link_url(token: str) -> str:
    return f"{settings.PUBLIC_URL.rstrip('/')}/portal/verify?token={token}"


def _magic_link_body(client: Client, url: str) -> Tuple[str, str]:
    name = client.name or "Valued Client"
    text = (
        f"Hello {name},\n\n"
        f"Use the link below to sign in to your client portal:\n\n{url}\n\n"
        f"The link expires in {settings.MAGIC_LINK_EXPIRE_MINUTES} minutes "
        "and can be used once.\n"
    )
    html = (
        f"<p>Hello {escape(name)},</p>"
        f'<p><a href="{escape(url)}">Sign in to your client portal</a></p>'
        f"<p>The link expires in {settings.MAGIC_LINK_EXPIRE_MINUTES} minutes "
        "and can be used once.</p>"
    )
    return text, html


class PortalService:

    @staticmethod
    async def request_magic_link(db: AsyncSession, mailer: Mailer, email: str) -> str:
        """
        Always returns the same message; whether a client exists is never
        revealed to the caller.
        """
        email = email.lower()
        clients = await ClientRepository(db).find_for_portal(email)
        if not clients:
            logger.info("Magic link requested for unknown email")
            return MAGIC_LINK_MESSAGE

        portal = PortalRepository(db)
        expires = utcnow() + timedelta(minutes=settings.MAGIC_LINK_EXPIRE_MINUTES)
        for client in clients:
            token = generate_login_token()
            await portal.add_login_token(
                ClientLoginToken(client_id=client.id, email=email, token=token, expires=expires)
            )
            text, html = _magic_link_body(client, magic_link_url(token))
            await mailer.send_async(email, "Sign in to Your Client Portal", text, html)
            logger.info("Magic link issued", company_id=client.company_id, client_id=client.id)
        return MAGIC_LINK_MESSAGE

    @staticmethod
    async def verify(db: AsyncSession, token: str) -> Tuple[ClientUser, Client, str, Any]:
        """
        Consume a magic-link token and open a portal session.
        Returns (client_user, client, jwt, expires_at).
        """
        portal = PortalRepository(db)
        login_token = await portal.find_login_token(token)
        if (
            login_token is None
            or login_token.used_at is not None
            or as_utc(login_token.expires) <= utcnow()
        ):
            raise ValidationFailed(INVALID_LINK_MESSAGE)

        client = await ClientRepository(db).find_for_portal_by_id(login_token.client_id)
        if client is None:
            raise ValidationFailed(INVALID_LINK_MESSAGE)

        if not await portal.consume_login_token(login_token.id):
            raise ValidationFailed(INVALID_LINK_MESSAGE)
        client_user = await portal.find_client_user(client.id, login_token.email)
        if client_user is None:
            client_user = await portal.add_client_user(
                ClientUser(client_id=client.id, email=login_token.email, name=client.name)
            )
        client_user.last_login_at = utcnow()
        await db.flush()

        jwt_token, expires_at = create_client_token(
            client_id=client.id,
            client_user_id=client_user.id,
            email=client_user.email,
            token_version=client_user.token_version,
            name=client_user.name,
        )
        logger.info(
            "Portal session opened",
            company_id=client.company_id,
            client_id=client.id,
            client_user_id=client_user.id,
        )
        return client_user, client, jwt_token, expires_at

    @staticmethod
    async def resolve_session(
        db: AsyncSession, claims: Dict[str, Any]
    ) -> Optional[Tuple[ClientUser, Client]]:
        """Map verified portal-token claims to live rows; None if revoked."""
        client_user_id = claims.get("client_user_id")
        client_id = claims.get("client_id")
        if not client_user_id or not client_id:
            return None
        client_user = await PortalRepository(db).get_client_user(client_user_id)
        if client_user is None or client_user.client_id != client_id:
            return None
        if client_user.token_version != claims.get("token_version"):
            return None
        client = await ClientRepository(db).find_for_portal_by_id(client_id)
        if client is None:
            return None
        return client_user, client

    @staticmethod
    async def logout(db: AsyncSession, client_user: Optional[ClientUser]) -> None:
        """Bump token_version so every outstanding portal token stops working."""
        if client_user is None:
            return
        client_user.token_version += 1
        await db.flush()
        logger.info("Portal session closed", client_user_id=client_user.id)

    @staticmethod
    async def list_invoices(db: AsyncSession, client: Client) -> List[Invoice]:
        return await InvoiceRepository(db).list_for_client(
            client.company_id,
            client.id,
            Invoice.status != InvoiceStatus.draft.value,
        )

    @staticmethod
    async def get_invoice(db: AsyncSession, client: Client, invoice_id: str) -> Invoice:
        repo = InvoiceRepository(db)
        invoice = await repo.find(
            client.company_id, invoice_id, options=(selectinload(Invoice.items),)
        )
        if (
            invoice is None
            or invoice.client_id != client.id
            or invoice.status == InvoiceStatus.draft.value
        ):
            raise NotFound(repo.not_found_message)
        return invoice
