"""
Liveness and readiness checks.
/health never touches storage; /health/db pings the configured document store.
"""

from fastapi import APIRouter, HTTPException, status
from urbanfix.core.settings import settings
from urbanfix.services.classification.registry import get_classifier
from urbanfix.services.storage.registry import get_document_store
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Process is up; reports which classifier backs submissions."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "classifier": get_classifier().get_model_info()["name"],
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/db")
async def database_health():
    try:
        info = get_document_store().ping()
    except Exception as e:
        logger.error(f"Document store ping failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document store unreachable"
        )
    return {
        "status": "healthy",
        "connected": True,
        **info,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
