"""Main entry point for the Campus Crew application."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from campus_crew import __version__
from campus_crew.api.v1 import (
    admin_router,
    auth_router,
    chats_router,
    gigs_router,
    global_chat_router,
    offers_router,
    profiles_router,
    system_router,
)
from campus_crew.core.settings import settings
from campus_crew.db.session import create_tables
from campus_crew.services.errors import CampusCrewError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Campus gig marketplace API",
    version=__version__,
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


@app.exception_handler(CampusCrewError)
async def campus_crew_error_handler(request: Request, exc: CampusCrewError) -> JSONResponse:
    """Render service errors as ``{"detail", "operation", "entity_id"}``."""
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.reason)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(profiles_router, prefix="/api/v1")
app.include_router(gigs_router, prefix="/api/v1")
app.include_router(offers_router, prefix="/api/v1")
app.include_router(chats_router, prefix="/api/v1")
app.include_router(global_chat_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")

# Blob URLs issued by the local blob store
app.mount(
    settings.media_base_url,
    StaticFiles(directory=Path(settings.media_root), check_dir=False),
    name="media",
)


@app.on_event("startup")
async def on_startup() -> None:
    if settings.auto_create_tables:
        create_tables()
    Path(settings.media_root).mkdir(parents=True, exist_ok=True)
    logger.info("%s %s started", settings.app_name, __version__)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "description": "Campus gig marketplace API",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("campus_crew.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
