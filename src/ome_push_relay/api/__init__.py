"""FastAPI server for OvenMediaEngine admission webhooks."""

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..relay_service import RelayService
from . import dependencies
from .admission import router as admission_router

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="OME Push Relay",
    description="Admission webhook that relays incoming OvenMediaEngine streams to RTMP targets",
    version="0.1.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# Register routers
app.include_router(admission_router)


@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    """Answer every unknown path or method with a plain 404."""
    if exc.status_code in (404, 405):
        logger.warning(f"Unhandled request: {request.method} {request.url.path}")
        return PlainTextResponse("Not found", status_code=404)
    return await http_exception_handler(request, exc)


@app.on_event("startup")
async def startup_event():
    """Initialize the relay service on startup."""
    logger.info("Starting up FastAPI application")

    dependencies.relay_service = RelayService()
    await dependencies.relay_service.start()

    logger.info("FastAPI application started")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down FastAPI application")

    if dependencies.relay_service:
        await dependencies.relay_service.stop()
        dependencies.relay_service = None

    logger.info("FastAPI application shut down")
