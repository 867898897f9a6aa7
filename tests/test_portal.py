"""
Client portal: magic-link sign-in and the client's invoice view.
"""

import re

import pytest
from sqlalchemy import select

from summit.core.config import settings
from summit.models.access import ClientLoginToken
from summit.repositories.access import PortalRepository
from summit.services.portal_service import MAGIC_LINK_MESSAGE


def link_token(message) -> str:
    match = re.search(r"token=([0-9a-f]{64})", message["text"])
    assert match, message["text"]
    return match.group(1)


def portal_cookie(token):
    return {"Cookie": f"{settings.CLIENT_COOKIE_NAME}={token}"}


@pytest.fixture
async def wayne(client, admin, factory):
    customer = await factory.client_record(admin, name="Wayne Enterprises", email="ap@wayne.com")
    draft = await factory.invoice(admin, customer["id"], number="INV-D")
    sent = await factory.invoice(admin, customer["id"], number="INV-S", status="sent")
    return {"client": customer, "draft": draft, "sent": sent}


async def sign_in(client, mailer, email="ap@wayne.com") -> str:
    resp = await client.post("/api/portal/auth/magic-link", json={"email": email})
    assert resp.status_code == 200
    resp = await client.post("/api/portal/auth/verify", json={"token": link_token(mailer.outbox[-1])})
    assert resp.status_code == 200, resp.text
    token = resp.cookies[settings.CLIENT_COOKIE_NAME]
    client.cookies.clear()
    return token


class TestMagicLink:
    async def test_known_and_unknown_emails_look_the_same(self, client, mailer, wayne):
        known = await client.post("/api/portal/auth/magic-link", json={"email": "AP@wayne.com"})
        unknown = await client.post("/api/portal/auth/magic-link", json={"email": "who@nowhere.io"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json() == {"success": True, "message": MAGIC_LINK_MESSAGE}

        assert len(mailer.outbox) == 1
        assert mailer.outbox[0]["to"] == "ap@wayne.com"
        assert "Wayne Enterprises" in mailer.outbox[0]["text"]

    async def test_verify_opens_session(self, client, mailer, wayne):
        await client.post("/api/portal/auth/magic-link", json={"email": "ap@wayne.com"})
        resp = await client.post(
            "/api/portal/auth/verify", json={"token": link_token(mailer.outbox[0])}
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["client_id"] == wayne["client"]["id"]
        assert body["email"] == "ap@wayne.com"
        cookie = resp.headers["set-cookie"]
        assert cookie.startswith(f"{settings.CLIENT_COOKIE_NAME}=")
        assert "HttpOnly" in cookie

    async def test_link_is_single_use(self, client, mailer, wayne):
        await client.post("/api/portal/auth/magic-link", json={"email": "ap@wayne.com"})
        token = link_token(mailer.outbox[0])
        assert (await client.post("/api/portal/auth/verify", json={"token": token})).status_code == 200
        resp = await client.post("/api/portal/auth/verify", json={"token": token})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid or expired login link"

    async def test_expired_link(self, client, mailer, wayne, monkeypatch):
        monkeypatch.setattr(settings, "MAGIC_LINK_EXPIRE_MINUTES", -1)
        await client.post("/api/portal/auth/magic-link", json={"email": "ap@wayne.com"})
        resp = await client.post(
            "/api/portal/auth/verify", json={"token": link_token(mailer.outbox[0])}
        )
        assert resp.status_code == 400

    async def test_unknown_token(self, client):
        resp = await client.post("/api/portal/auth/verify", json={"token": "0" * 64})
        assert resp.status_code == 400

    async def test_token_is_consumed_once(self, client, mailer, wayne, session_factory):
        await client.post("/api/portal/auth/magic-link", json={"email": "ap@wayne.com"})
        token = link_token(mailer.outbox[0])

        async with session_factory() as session:
            row = await session.scalar(
                select(ClientLoginToken).where(ClientLoginToken.token == token)
            )
            portal = PortalRepository(session)
            assert await portal.consume_login_token(row.id) is True
            # a concurrent verify holding the same token loses
            assert await portal.consume_login_token(row.id) is False
            await session.commit()

        resp = await client.post("/api/portal/auth/verify", json={"token": token})
        assert resp.status_code == 400

    async def test_client_name_is_escaped_in_html(self, client, admin, mailer, factory):
        await factory.client_record(admin, name="Wayne <b>Ent</b> & Co", email="ap@wayne.com")
        await client.post("/api/portal/auth/magic-link", json={"email": "ap@wayne.com"})

        message = mailer.outbox[0]
        assert "Wayne &lt;b&gt;Ent&lt;/b&gt; &amp; Co" in message["html"]
        assert "<b>" not in message["html"]
        assert "Wayne <b>Ent</b> & Co" in message["text"]


class TestPortalInvoices:
    async def test_drafts_are_hidden(self, client, mailer, wayne):
        token = await sign_in(client, mailer)
        resp = await client.get("/api/portal/invoices", headers=portal_cookie(token))
        assert resp.status_code == 200
        assert [i["invoice_number"] for i in resp.json()] == ["INV-S"]

        resp = await client.get(
            f"/api/portal/invoices/{wayne['sent']['id']}", headers=portal_cookie(token)
        )
        assert resp.status_code == 200
        assert resp.json()["items"][0]["description"] == "Consulting"

        resp = await client.get(
            f"/api/portal/invoices/{wayne['draft']['id']}", headers=portal_cookie(token)
        )
        assert resp.status_code == 404

    async def test_other_clients_invoices_are_invisible(self, client, admin, mailer, wayne, factory):
        stark = await factory.client_record(admin, name="Stark", email="ap@stark.com")
        theirs = await factory.invoice(admin, stark["id"], number="INV-X", status="sent")

        token = await sign_in(client, mailer)
        resp = await client.get(f"/api/portal/invoices/{theirs['id']}", headers=portal_cookie(token))
        assert resp.status_code == 404

    async def test_staff_session_is_not_a_portal_session(self, client, admin, wayne):
        resp = await client.get("/api/portal/invoices", headers=admin)
        assert resp.status_code == 401

    async def test_logout_revokes_outstanding_tokens(self, client, mailer, wayne):
        token = await sign_in(client, mailer)
        resp = await client.post("/api/portal/auth/logout", headers=portal_cookie(token))
        assert resp.status_code == 200

        resp = await client.get("/api/portal/invoices", headers=portal_cookie(token))
        assert resp.status_code == 401

    async def test_sign_in_again_after_logout(self, client, mailer, wayne):
        first = await sign_in(client, mailer)
        await client.post("/api/portal/auth/logout", headers=portal_cookie(first))
        second = await sign_in(client, mailer)
        resp = await client.get("/api/portal/invoices", headers=portal_cookie(second))
        assert resp.status_code == 200
