"""
tests/conftest.py
-----------------
Shared fixtures: an in-memory database per test, the app wired to it, and
recording stand-ins for the mail and storage integrations.
"""

import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CLIENT_AUTH_SECRET", "test-client-secret")
os.environ.setdefault("CRON_API_KEY", "test-cron-key")
os.environ.setdefault("APP_ENV", "development")

from typing import Any, Dict, List

import boto3
import pytest
from botocore.config import Config
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import app
from summit.db.session import get_db
from summit.dependencies import get_mailer, get_storage
from summit.models import Base
from summit.services.mail_service import Mailer
from summit.services.storage_service import ObjectStorage

PASSWORD = "correct-horse-battery"


class RecordingMailer(Mailer):
    """Keeps messages in memory instead of talking SMTP."""

    def __init__(self) -> None:
        super().__init__(host="smtp.invalid", port=25)
        self.outbox: List[Dict[str, Any]] = []

    def send(self, to, subject, text, html=None, attachments=None) -> None:
        self.outbox.append({
            "to": to,
            "subject": subject,
            "text": text,
            "html": html,
            "attachments": attachments or [],
        })


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # let SQLAlchemy own BEGIN so SAVEPOINT works with pysqlite
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def storage():
    s3 = boto3.client(
        "s3",
        endpoint_url="http://storage.test:9000",
        aws_access_key_id="test",
        aws_secret_access_key="test",
        region_name="us-east-1",
        config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
    )
    return ObjectStorage(client=s3, bucket="summit-test")


@pytest.fixture
async def client(session_factory, mailer, storage):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_storage] = lambda: storage

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


# ── Account helpers ───────────────────────────────────────────────────────────

async def register_company(http: AsyncClient, company: str, email: str) -> dict:
    resp = await http.post(
        "/api/auth/register",
        json={"company_name": company, "name": "Owner", "email": email, "password": PASSWORD},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def login(http: AsyncClient, email: str, password: str = PASSWORD) -> Dict[str, str]:
    resp = await http.post("/api/auth/login", data={"username": email, "password": password})
    assert resp.status_code == 200, resp.text
    # headers only; the session cookie would leak into unauthenticated calls
    http.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


@pytest.fixture
async def admin(client):
    """Admin of Acme Corp."""
    await register_company(client, "Acme Corp", "owner@acme-corp.com")
    return await login(client, "owner@acme-corp.com")


@pytest.fixture
async def other_admin(client):
    """Admin of a second, unrelated company."""
    await register_company(client, "Globex Ltd", "owner@globex-ltd.com")
    return await login(client, "owner@globex-ltd.com")


@pytest.fixture
def make_user(client, admin):
    """Add a user with `role` to Acme Corp and return auth headers for them."""

    async def _make(role: str, email: str) -> Dict[str, str]:
        resp = await client.post(
            "/api/users",
            json={"name": role.title(), "email": email, "password": PASSWORD, "role": role},
            headers=admin,
        )
        assert resp.status_code == 201, resp.text
        return await login(client, email)

    return _make


# ── Record helpers ────────────────────────────────────────────────────────────

class Factory:
    """Creates records through the API as a given user."""

    def __init__(self, http: AsyncClient) -> None:
        self.http = http

    async def client_record(self, headers, name="Wayne Enterprises", email=None, **extra) -> dict:
        resp = await self.http.post(
            "/api/clients", json={"name": name, "email": email, **extra}, headers=headers
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def invoice(self, headers, client_id, number="INV-001", **extra) -> dict:
        body = {
            "client_id": client_id,
            "invoice_number": number,
            "issue_date": "2026-01-01",
            "due_date": "2026-01-31",
            "items": [{"description": "Consulting", "quantity": "2", "unit_price": "50.00"}],
        }
        body.update(extra)
        resp = await self.http.post("/api/invoices", json=body, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    async def account(self, headers, name="Operating", initial_balance="0.00") -> dict:
        resp = await self.http.post(
            "/api/accounts",
            json={"name": name, "type": "bank", "initial_balance": initial_balance},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()


@pytest.fixture
def factory(client):
    return Factory(client)
