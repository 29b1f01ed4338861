"""
UrbanFix - FastAPI Application Entry Point

Municipal issue reporting: citizens submit issues, authorities resolve
them, admins moderate.

DESIGN PRINCIPLES:
- Classification assists triage, it never blocks a submission
- Closed issues are frozen at the service boundary, not only in the UI
- Identity is established upstream; this service enforces roles and ownership
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from urbanfix.core.errors import LifecycleError, StorageError
from urbanfix.core.settings import settings
from urbanfix.routes import comments, health, issues, moderation, teams
from urbanfix.services.storage.registry import get_document_store

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Municipal issue reporting: submission, triage, resolution and moderation",
    debug=settings.DEBUG
)


@app.exception_handler(LifecycleError)
async def lifecycle_exception_handler(request: Request, exc: LifecycleError):
    """Map business failures to their HTTP status."""
    if isinstance(exc, StorageError):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global exception handler to catch ALL exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them with full traceback."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# Pydantic validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log request validation errors and keep FastAPI's 422 shape."""
    logger.info(f"Request validation failed on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors())}
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Application lifecycle events
@app.on_event("startup")
async def startup_event():
    """
    Initialize the document store on startup.
    A failure is logged, not fatal: /health/db reports it.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    try:
        get_document_store()
    except Exception as e:
        logger.warning(f"Document store initialization failed: {e}")
        logger.warning("The app will start but database operations may fail.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Shutting down {settings.APP_NAME}")


# Include routers
app.include_router(health.router)
app.include_router(issues.router)
app.include_router(comments.router)
app.include_router(moderation.router)
app.include_router(teams.router)


# Root endpoint
@app.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "health": "/health",
    }
