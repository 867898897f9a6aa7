"""
api/routes/portal.py
--------------------
Client portal. Authenticated by the portal cookie only; staff sessions and
API tokens are not accepted here.

POST /api/portal/auth/magic-link  — Email a single-use sign-in link.
POST /api/portal/auth/verify      — Consume the link, set the portal cookie.
POST /api/portal/auth/logout      — Invalidate portal sessions, clear cookie.
GET  /api/portal/invoices         — The client's non-draft invoices.
GET  /api/portal/invoices/{id}    — One of them, with items.
"""

from typing import Annotated, List, Optional, Tuple

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from summit.core.config import settings
from summit.db.session import get_db
from summit.dependencies import get_mailer, get_portal_client, resolve_portal_session
from summit.models.access import ClientUser
from summit.models.party import Client
from summit.schemas.access import MagicLinkRequest, PortalSession, VerifyRequest
from summit.schemas.common import SuccessResponse
from summit.schemas.invoice import InvoiceListRead, InvoiceRead
from summit.services.mail_service import Mailer
from summit.services.portal_service import PortalService

router = APIRouter(prefix="/portal", tags=["Client portal"])


@router.post("/auth/magic-link", response_model=SuccessResponse, summary="Request a sign-in link")
async def request_magic_link(
    body: MagicLinkRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> SuccessResponse:
    message = await PortalService.request_magic_link(db, mailer, body.email)
    return SuccessResponse(message=message)


@router.post("/auth/verify", response_model=PortalSession, summary="Verify a sign-in link")
async def verify_magic_link(
    body: VerifyRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PortalSession:
    client_user, client, token, expires_at = await PortalService.verify(db, body.token)
    response.set_cookie(
        settings.CLIENT_COOKIE_NAME,
        token,
        max_age=settings.CLIENT_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
        path="/",
    )
    return PortalSession(
        client_id=client.id,
        client_user_id=client_user.id,
        email=client_user.email,
        name=client_user.name,
        expires_at=expires_at,
    )


@router.post("/auth/logout", response_model=SuccessResponse, summary="Sign out of the portal")
async def logout(
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    session: Annotated[Optional[Tuple[ClientUser, Client]], Depends(resolve_portal_session)],
) -> SuccessResponse:
    await PortalService.logout(db, session[0] if session else None)
    response.delete_cookie(settings.CLIENT_COOKIE_NAME, path="/")
    return SuccessResponse(message="Logged out")


@router.get("/invoices", response_model=List[InvoiceListRead], summary="Your invoices")
async def list_invoices(
    db: Annotated[AsyncSession, Depends(get_db)],
    client: Annotated[Client, Depends(get_portal_client)],
) -> List[InvoiceListRead]:
    invoices = await PortalService.list_invoices(db, client)
    return [InvoiceListRead.model_validate(i) for i in invoices]


@router.get("/invoices/{invoice_id}", response_model=InvoiceRead, summary="One of your invoices")
async def get_invoice(
    invoice_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    client: Annotated[Client, Depends(get_portal_client)],
) -> InvoiceRead:
    invoice = await PortalService.get_invoice(db, client, invoice_id)
    return InvoiceRead.model_validate(invoice)
