"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from personnel_compliance.api.routes import (
    compliance_router,
    document_types_router,
    health_router,
    requirements_router,
)
from personnel_compliance.clock import Clock, utcnow
from personnel_compliance.config import get_settings
from personnel_compliance.database import create_all, dispose_db, init_db
from personnel_compliance.errors import ComplianceError, ErrorKind
from personnel_compliance.events import AsyncEventEmitter, LoggingHandler

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION_ERROR: 422,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_APPROVED: status.HTTP_409_CONFLICT,
    ErrorKind.STALE_STATE: status.HTTP_409_CONFLICT,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    owns_db = getattr(app.state, "session_factory", None) is None
    if owns_db:
        settings = get_settings()
        engine, factory = init_db()
        if settings.debug or settings.database_url.startswith("sqlite"):
            await create_all(engine)
        app.state.session_factory = factory
    yield
    if owns_db:
        await dispose_db()
        app.state.session_factory = None


def create_app(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    emitter: AsyncEventEmitter | None = None,
    clock: Clock = utcnow,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Tests pass their own session factory, emitter and clock; the default
    app builds the database from settings at startup.
    """
    app = FastAPI(
        title="Personnel Compliance API",
        description="Employee document requirements, approvals and expiry tracking",
        version="0.1.0",
        lifespan=lifespan,
    )

    if emitter is None:
        emitter = AsyncEventEmitter()
        emitter.on_all(LoggingHandler())

    app.state.session_factory = session_factory
    app.state.emitter = emitter
    app.state.clock = clock

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(ComplianceError)
    async def compliance_exception_handler(
        request: Request, exc: ComplianceError
    ) -> JSONResponse:
        """Map typed domain errors to HTTP responses."""
        return JSONResponse(
            status_code=ERROR_STATUS[exc.kind],
            content=exc.to_dict(),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(document_types_router, prefix="/api/v1")
    app.include_router(requirements_router, prefix="/api/v1")
    app.include_router(compliance_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
