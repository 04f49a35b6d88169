"""FastAPI application for the Roster registry.

Provides REST API endpoints wrapping the roster package for:
- Profile registration (bulk and first-time)
- Status and tag maintenance
- Administrator handoff
- The registry event log
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roster import __version__
from roster.registry.errors import (
    AlreadyExists,
    CapacityExceeded,
    DuplicateTag,
    InvalidInput,
    NotFound,
    RegistryError,
    StoreError,
    TagNotFound,
    Unauthorized,
)
from web.backend.app.routers import registry

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[RegistryError], int] = {
    Unauthorized: 403,
    AlreadyExists: 409,
    InvalidInput: 400,
    NotFound: 404,
    CapacityExceeded: 409,
    DuplicateTag: 409,
    TagNotFound: 404,
}

app = FastAPI(
    title="Roster API",
    description=(
        "REST API for the Roster registry. "
        "Provides endpoints for profile registration, status and tag "
        "maintenance, administrator handoff and the event log."
    ),
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError):
    return JSONResponse(
        status_code=ERROR_STATUS.get(type(exc), 400),
        content={"error": exc.code, "detail": exc.message},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Registry store failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content={"error": "StoreError", "detail": str(exc)},
    )


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------
app.include_router(registry.router)


# ---------------------------------------------------------------------------
# Root and health-check endpoints
# ---------------------------------------------------------------------------


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "Roster API",
        "version": __version__,
        "description": "Administered participant registry REST API",
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
