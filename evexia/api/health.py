"""Health check endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from evexia.api.deps import db_dependency, settings_dependency
from evexia.config import Settings
from evexia.utils.clock import utcnow
from evexia.utils.logging import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


def check_database(db: Session) -> bool:
    """Check database connectivity."""
    try:
        return db.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError as e:
        logger.error("database_check_failed", error=str(e), exc_info=True)
        return False


@router.get("/health")
async def health_check(
    response: Response,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
) -> Dict[str, Any]:
    """Service liveness plus a database round trip."""
    database_ok = check_database(db)
    if not database_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if database_ok else "unhealthy",
        "timestamp": utcnow().isoformat(),
        "service": "evexia-api",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": {"database": database_ok},
    }
