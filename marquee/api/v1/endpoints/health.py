"""
Health check endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from marquee.api.deps import get_db_manager, get_metrics
from marquee.config import settings
from marquee.core.database import DatabaseManager
from marquee.core.metrics import MetricsCollector

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/live")
async def liveness() -> Any:
    """
    Kubernetes liveness probe
    """
    return {"status": "alive", "service": "marquee-api"}


@router.get("/ready")
async def readiness(
    db_manager: DatabaseManager = Depends(get_db_manager)
) -> Any:
    """
    Kubernetes readiness probe - checks the database
    """
    checks = {
        "database": False,
        "api": True
    }

    try:
        checks["database"] = await db_manager.ping()
    except (SQLAlchemyError, OSError, RuntimeError) as e:
        logger.warning(f"Readiness check: database unreachable: {e}")

    all_healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={
            "status": "ready" if all_healthy else "not ready",
            "checks": checks,
            "version": settings.APP_VERSION
        }
    )


@router.get("/metrics")
async def reservation_metrics(
    metrics: MetricsCollector = Depends(get_metrics)
) -> Any:
    """
    In-process reservation counters and latency percentiles
    """
    return await metrics.get_metrics()
