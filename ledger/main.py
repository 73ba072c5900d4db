import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import ledger.models  # noqa: F401  (registers tables on Base.metadata)
from ledger.core.config import Settings
from ledger.core.config import settings as default_settings
from ledger.core.database import Database
from ledger.core.errors import LedgerError
from ledger.routers import outstanding

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {
        "name": "Outstanding",
        "description": "Retailer obligations, payments, payment history and summaries.",
    },
]


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


REQUEST_LOCATIONS = ("body", "path", "query", "header", "cookie")


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        location = ".".join(
            str(part) for part in errors[0].get("loc", ()) if part not in REQUEST_LOCATIONS
        )
        message = f"Invalid {location}" if location else message
    return JSONResponse(
        status_code=400,
        content={"error": message, "details": jsonable_errors(errors)},
    )


def jsonable_errors(errors: object) -> list[dict[str, object]]:
    """Strip the non-serialisable ``ctx``/``input`` parts pydantic attaches to errors."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in errors  # type: ignore[attr-defined]
    ]


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the API application.

    ``database`` defaults to one built from ``APP_DATABASE_DSN``; tests pass
    their own.
    """
    settings = settings or default_settings
    database = database or Database.from_dsn(settings.APP_DATABASE_DSN)

    logging.getLogger("ledger").setLevel(settings.LOG_LEVEL.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if settings.AUTO_CREATE_TABLES:
            database.create_all()
        logger.info("%s %s started", settings.APP_NAME, settings.version)
        yield
        database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.version,
        description=(
            "Outstanding balance and payment reconciliation ledger. "
            "Tracks what each retailer owes, applies partial payments and keeps an "
            "append-only payment history."
        ),
        openapi_tags=OPENAPI_TAGS,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Total-Count", "Idempotency-Replayed"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]

    app.include_router(
        outstanding.router,
        prefix=f"{settings.API_PREFIX}/outstanding",
        tags=["Outstanding"],
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "app": settings.APP_NAME,
            "version": settings.version,
            "status": "running",
        }

    return app
