"""Health check endpoints for liveness and readiness probes."""
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from creditledger.api.deps import get_db, get_razorpay_adapter
from creditledger.adapters.razorpay_adapter import RazorpayAdapter

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    """
    Liveness probe.

    Returns as long as the process is serving; no dependency is checked.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "0.1.0",
    }


@router.get("/health/ready", tags=["Health"])
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayAdapter = Depends(get_razorpay_adapter),
) -> JSONResponse:
    """
    Readiness probe.

    503 when the database cannot be reached. Missing Razorpay credentials
    are reported without affecting readiness.
    """
    checks = {
        "database": "unknown",
        "razorpay": "configured" if gateway.client is not None else "not_configured",
    }
    ready = True

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "connected"
    except Exception as exc:
        logger.error("database_health_check_failed", error=str(exc))
        await db.rollback()
        checks["database"] = "disconnected"
        ready = False

    if checks["razorpay"] == "not_configured":
        logger.warning("razorpay_health_check_not_configured")

    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "checks": checks,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
