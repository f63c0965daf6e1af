# src/passvote/main.py
"""Main entry point for the PassVote application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from passvote.api.v1 import passkey_router, surveys_router, votes_router
from passvote.api.v1.dependencies import ServiceContainer, build_services
from passvote.core.settings import settings
from passvote.db.session import SessionLocal, create_tables
from passvote.services.wallet import HttpWalletGateway

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="PassVote API",
    description="Passkey-authenticated, fee-bearing survey voting",
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
app.include_router(passkey_router, prefix="/api/v1")
app.include_router(surveys_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    # Tests install their own container before the app starts.
    services: ServiceContainer | None = getattr(app.state, "services", None)
    if services is None:
        create_tables()
        services = build_services(SessionLocal)
        app.state.services = services
    if settings.session_sweep_enabled:
        await services.sweeper.start()
        logger.info(
            "Session sweeper running every %.0fs", services.sweeper.interval_seconds
        )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    services: ServiceContainer | None = getattr(app.state, "services", None)
    if services is None:
        return
    await services.sweeper.stop()
    if isinstance(services.wallet, HttpWalletGateway):
        await services.wallet.close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "PassVote API",
        "version": settings.app_version,
        "description": "Passkey-authenticated, fee-bearing survey voting",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("passvote.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
