"""Health check endpoints"""
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models.account import Account
from app.utils import clock
from app.utils.revocation import RevocationStore, get_revocation_store

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time
STARTUP_TIME = time.time()


@router.get("")
def health_check():
    """
    Basic health check endpoint

    Returns 200 if service is running
    """
    return {
        "status": "healthy",
        "service": "Job Portal",
        "version": "0.1.0",
        "timestamp": clock.utcnow().isoformat()
    }


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check - verifies the database is reachable

    Returns 200 if ready to serve traffic, 503 if not ready
    """
    checks: Dict[str, Any] = {
        "database": False,
        "database_latency_ms": None
    }

    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000
        checks["database"] = True
        checks["database_latency_ms"] = round(latency_ms, 2)
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "checks": checks,
                "message": f"Database check failed: {e}"
            },
        )

    if latency_ms > 1000:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "degraded",
                "checks": checks,
                "message": "Database latency is high"
            },
        )

    return {
        "status": "ready",
        "checks": checks,
        "timestamp": clock.utcnow().isoformat()
    }


@router.get("/live")
def liveness_check():
    """
    Liveness check - verifies service is alive

    Used by Kubernetes liveness probe
    """
    return {
        "status": "alive",
        "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
        "timestamp": clock.utcnow().isoformat()
    }


@router.get("/stats")
def health_stats(
    db: Session = Depends(get_db),
    store: RevocationStore = Depends(get_revocation_store),
) -> Dict[str, Any]:
    """
    Account counts by status and revocation store size
    """
    by_status = dict(
        db.query(Account.status, func.count(Account.id)).group_by(Account.status).all()
    )

    return {
        "status": "healthy",
        "accounts": {
            "total": sum(by_status.values()),
            "by_status": by_status
        },
        "revocation": {
            "backend": settings.REVOCATION_BACKEND,
            "entries": store.size()
        },
        "system": {
            "uptime_seconds": round(time.time() - STARTUP_TIME, 2),
            "production": settings.is_production
        },
        "timestamp": clock.utcnow().isoformat()
    }
