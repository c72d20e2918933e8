"""
Health check endpoints for monitoring system status
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from infrastructure.config.settings import settings

router = APIRouter()


@router.get("")
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint"""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check() -> Dict[str, Any]:
    """Readiness check - verifies the ledger database is reachable"""
    db_status = await check_database()
    if db_status["status"] != "healthy":
        raise HTTPException(status_code=503, detail=f"Database unavailable: {db_status.get('error')}")

    return {
        "status": "ready",
        "timestamp": time.time(),
        "version": settings.version,
        "environment": settings.environment,
        "components": {"database": db_status},
    }


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness check - verifies the application is running"""
    return {
        "status": "alive",
        "timestamp": time.time(),
        "uptime": time.time() - getattr(liveness_check, "_start_time", time.time()),
    }


# Store start time for uptime calculation
liveness_check._start_time = time.time()


async def check_database() -> Dict[str, Any]:
    """Check database connectivity"""
    from core.database.connection import get_db

    try:
        async with get_db() as db:
            await db.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
