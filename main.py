"""
main.py
-------
Summit Finance API entry point.

create_application() wires everything together:
  1. lifespan sets up structlog and drains the DB pool on shutdown.
  2. CORS for the configured front-end origins.
  3. All routers mounted under /api, plus /api/health.
  4. Exception handlers turn the error taxonomy (summit.core.errors) and
     request validation failures into JSON responses; anything else is a
     logged 500 whose message is never exposed.

Run with:
    uvicorn main:app --reload                   # local
    uvicorn main:app --host 0.0.0.0 --workers 4  # deployed
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from summit.api.routes import (
    accounts,
    api_tokens,
    auth,
    categories,
    clients,
    companies,
    cron,
    download,
    expenses,
    income,
    invoices,
    portal,
    reports,
    users,
    vendors,
)
from summit.core.config import settings
from summit.core.errors import SummitError
from summit.core.logging import configure_logging, get_logger
from summit.db.session import engine

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    configure_logging()
    logger.info(
        "Starting up",
        app=settings.APP_NAME,
        env=settings.APP_ENV,
        debug=settings.DEBUG,
    )
    yield
    logger.info("Shutting down, disposing DB engine")
    await engine.dispose()


def _field_errors(exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        # loc is ("body" | "query" | "path", field, ...)
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "request", "message": error.get("msg", "")})
    return errors


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Multi-tenant invoicing and bookkeeping API with session and "
            "API-token auth, role permissions, and per-company data isolation."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    api = APIRouter(prefix="/api")
    api.include_router(auth.router)
    api.include_router(users.router)
    api.include_router(companies.router)
    api.include_router(clients.router)
    api.include_router(vendors.router)
    api.include_router(categories.expense_router)
    api.include_router(categories.income_router)
    api.include_router(expenses.router)
    api.include_router(income.router)
    api.include_router(invoices.router)
    api.include_router(accounts.router)
    api.include_router(accounts.transactions_router)
    api.include_router(reports.router)
    api.include_router(api_tokens.router)
    api.include_router(download.router)
    api.include_router(portal.router)
    api.include_router(cron.router)

    # ── Health Check ──────────────────────────────────────────────────────────

    @api.get("/health", tags=["Health"], summary="Service health check")
    async def health() -> dict:
        return {"status": "ok", "app": settings.APP_NAME, "env": settings.APP_ENV}

    app.include_router(api)

    # ── Exception Handlers ────────────────────────────────────────────────────

    @app.exception_handler(SummitError)
    async def summit_error_handler(request: Request, exc: SummitError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Upstream failure", path=request.url.path, error=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_content(),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Validation failed", "errors": _field_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    return app


app = create_application()
