"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter
import logging

from app.config.firebase import get_db
from app.core.errors import StorageError
from app.core.settings import settings
from app.utils.firestore_helpers import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utcnow().isoformat(),
    }


@router.get("/db")
async def database_health():
    """
    Database connectivity check.
    Lists collections as a lightweight round trip to the store.
    """
    try:
        db = get_db()
        collections = list(db.collections())
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        raise StorageError("Database connection failed")

    return {
        "status": "healthy",
        "database": "mock" if settings.USE_MOCK_DB else "firestore",
        "connected": True,
        "collections_count": len(collections),
        "timestamp": utcnow().isoformat(),
    }
