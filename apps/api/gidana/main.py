"""FastAPI application for the Gidana rental core."""
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .core.config import get_settings
from .core.context import AppContext
from .core.errors import GidanaError, UnauthenticatedError
from .routers import auth, claims, directory, properties, session, tenancy

logger = logging.getLogger(__name__)

settings = get_settings()
logging.basicConfig(level=settings.log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the application context unless one was installed beforehand."""

    context: AppContext | None = getattr(app.state, "context", None)
    owned = context is None
    if context is None:
        context = AppContext(get_settings())
        app.state.context = context
    await context.init()
    try:
        yield
    finally:
        if owned:
            await context.dispose()
            app.state.context = None


app = FastAPI(title="Gidana Rental API", version="0.1.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(GidanaError)
async def handle_domain_error(request: Request, exc: GidanaError) -> JSONResponse:
    """Render domain errors as ``{"detail", "code"}`` with their mapped status."""

    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)

    content: dict[str, object] = {"detail": exc.message, "code": exc.code}
    unit_id = getattr(exc, "unit_id", None)
    if unit_id is not None:
        content["unit_id"] = unit_id
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, str]:
    """Simple liveness check."""

    return {"status": "ok"}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)


@app.get("/robots.txt", response_class=PlainTextResponse, include_in_schema=False)
async def robots() -> PlainTextResponse:
    return PlainTextResponse("User-agent: *\nDisallow:")


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(session.router, prefix="/api", tags=["session"])
app.include_router(directory.router, prefix="/api", tags=["directory"])
app.include_router(claims.router, prefix="/api", tags=["claims"])
app.include_router(properties.router, prefix="/api", tags=["properties"])
app.include_router(tenancy.router, prefix="/api", tags=["tenancy"])
