# src/whatswho/main.py
"""Main entry point for the Whatswho application."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from whatswho.api.v1 import (
    auth_router,
    messages_router,
    realtime_router,
    users_router,
)
from whatswho.core.settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("whatswho")

# Initialize FastAPI app
app = FastAPI(
    title="Whatswho API",
    description="One-to-one chat with presence-aware realtime delivery",
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


@app.middleware("http")
async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log every HTTP request line."""
    logger.info("[HTTP] %s %s", request.method, request.url.path)
    return await call_next(request)


# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(realtime_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Whatswho API",
        "version": settings.app_version,
        "description": "One-to-one chat with presence-aware realtime delivery",
        "docs": "/docs",
        "realtime": "/api/v1/ws",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("whatswho.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
