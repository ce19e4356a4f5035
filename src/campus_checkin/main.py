# src/campus_checkin/main.py
"""Main entry point for the Campus Check-in application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from campus_checkin.api.v1 import attendance_router, events_router
from campus_checkin.core.settings import settings
from campus_checkin.db.session import create_tables
from campus_checkin.services.signing import get_signature_engine

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Campus Check-in API",
    description="QR-code attendance check-in for college events",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(events_router, prefix="/api/v1")
app.include_router(attendance_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    # Load the signing secret once, failing fast if it is missing.
    get_signature_engine()
    if settings.debug:
        create_tables()
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "QR-code attendance check-in for college events",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("campus_checkin.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
