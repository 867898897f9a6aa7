"""
One company can never read or change another company's rows, and a
request without a session changes nothing.
"""

import pytest
from sqlalchemy import func, select

from summit.core.errors import NotFound
from summit.models import Client, Vendor
from summit.repositories.party import VendorRepository


@pytest.fixture
async def foreign_records(client, other_admin, factory):
    customer = await factory.client_record(other_admin, name="Globex Customer")
    invoice = await factory.invoice(other_admin, customer["id"], number="G-1")
    account = await factory.account(other_admin, name="Globex Bank")
    return {"clients": customer["id"], "invoices": invoice["id"], "accounts": account["id"]}


class TestCrossTenantReads:
    @pytest.mark.parametrize("resource", ["clients", "invoices", "accounts"])
    async def test_foreign_id_looks_absent(self, client, admin, foreign_records, resource):
        foreign = await client.get(f"/api/{resource}/{foreign_records[resource]}", headers=admin)
        absent = await client.get(f"/api/{resource}/does-not-exist", headers=admin)
        assert foreign.status_code == absent.status_code == 404
        assert foreign.json() == absent.json()

    async def test_lists_only_show_own_rows(self, client, admin, foreign_records, factory):
        await factory.client_record(admin, name="Acme Customer")
        resp = await client.get("/api/clients", headers=admin)
        assert [c["name"] for c in resp.json()["data"]] == ["Acme Customer"]

        resp = await client.get("/api/invoices", headers=admin)
        assert resp.json()["data"] == []

    async def test_foreign_invoice_payments_look_absent(self, client, admin, foreign_records):
        resp = await client.get(
            f"/api/invoices/{foreign_records['invoices']}/payments", headers=admin
        )
        assert resp.status_code == 404


class TestCrossTenantWrites:
    async def test_update_foreign_client(self, client, admin, other_admin, foreign_records):
        resp = await client.put(
            f"/api/clients/{foreign_records['clients']}",
            json={"name": "Hijacked"},
            headers=admin,
        )
        assert resp.status_code == 404

        resp = await client.get(f"/api/clients/{foreign_records['clients']}", headers=other_admin)
        assert resp.json()["name"] == "Globex Customer"

    async def test_delete_foreign_invoice(self, client, admin, other_admin, foreign_records):
        resp = await client.delete(f"/api/invoices/{foreign_records['invoices']}", headers=admin)
        assert resp.status_code == 404

        resp = await client.get(f"/api/invoices/{foreign_records['invoices']}", headers=other_admin)
        assert resp.status_code == 200

    async def test_invoice_for_foreign_client(self, client, admin, foreign_records):
        resp = await client.post(
            "/api/invoices",
            json={
                "client_id": foreign_records["clients"],
                "invoice_number": "A-1",
                "issue_date": "2026-01-01",
                "due_date": "2026-01-31",
                "items": [{"description": "x", "quantity": "1", "unit_price": "1"}],
            },
            headers=admin,
        )
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "client_id"

    async def test_same_invoice_number_in_two_companies(self, client, admin, foreign_records, factory):
        customer = await factory.client_record(admin)
        invoice = await factory.invoice(admin, customer["id"], number="G-1")
        assert invoice["invoice_number"] == "G-1"


class TestNoSession:
    async def test_write_without_session_is_rejected(self, client, admin, session_factory):
        resp = await client.post("/api/clients", json={"name": "Sneaky"})
        assert resp.status_code == 401
        assert resp.headers["www-authenticate"] == "Bearer"

        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(Client))
        assert count == 0

    async def test_garbage_bearer_is_rejected(self, client):
        resp = await client.get("/api/clients", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    async def test_bad_api_token_is_rejected(self, client):
        resp = await client.get(
            "/api/clients", headers={"Authorization": "Bearer skt_00000000_" + "0" * 32}
        )
        assert resp.status_code == 401

    async def test_token_of_deleted_user_is_rejected(self, client, admin, make_user):
        staff = await make_user("staff", "clerk@acme-corp.com")
        users = (await client.get("/api/users", headers=admin)).json()
        clerk = next(u for u in users if u["email"] == "clerk@acme-corp.com")
        resp = await client.delete(f"/api/users/{clerk['id']}", headers=admin)
        assert resp.status_code == 200

        resp = await client.get("/api/clients", headers=staff)
        assert resp.status_code == 401

    async def test_session_cookie_is_accepted(self, client, admin):
        resp = await client.post(
            "/api/auth/login",
            data={"username": "owner@acme-corp.com", "password": "correct-horse-battery"},
        )
        assert resp.status_code == 200
        resp = await client.get("/api/auth/me")
        assert resp.status_code == 200
        assert resp.json()["user"]["email"] == "owner@acme-corp.com"

        resp = await client.post("/api/auth/clear-session")
        assert resp.status_code == 200
        resp = await client.get("/api/auth/me")
        assert resp.status_code == 401


class TestRepositoryScoping:
    async def test_hard_delete_needs_the_owning_company(self, client, admin, other_admin, session_factory):
        vendor = (await client.post("/api/vendors", json={"name": "Printer Co"}, headers=admin)).json()
        own = (await client.get("/api/companies/current", headers=admin)).json()["id"]
        foreign = (await client.get("/api/companies/current", headers=other_admin)).json()["id"]

        async with session_factory() as session:
            with pytest.raises(NotFound):
                await VendorRepository(session).hard_delete(foreign, vendor["id"])
            await session.rollback()

        async with session_factory() as session:
            await VendorRepository(session).hard_delete(own, vendor["id"])
            await session.commit()

        async with session_factory() as session:
            assert await session.scalar(select(func.count()).select_from(Vendor)) == 0
