"""
Health, readiness and liveness probes.
"""

import logging
import os
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from elurinfo import __version__

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def health_check(request: Request):
    """General service health."""
    state = request.app.state
    database_ok = await state.cache.store.ping()
    providers = getattr(state, "providers", None)

    return {
        "status": "OK",
        "timestamp": _now(),
        "uptime": round(time.monotonic() - state.started_at, 1),
        "version": __version__,
        "database": "connected" if database_ok else "disconnected",
        "providers": providers.get_stats() if providers is not None else None,
    }


@router.get("/ready")
async def readiness(request: Request):
    """Ready once the record store answers."""
    checks = {
        "database": await request.app.state.cache.store.ping(),
    }
    is_ready = all(checks.values())
    if not is_ready:
        logger.warning(f"⚠️ Readiness check failed: {checks}")

    return JSONResponse(
        status_code=200 if is_ready else 503,
        content={
            "status": "READY" if is_ready else "NOT READY",
            "checks": checks,
            "timestamp": _now(),
        },
    )


@router.get("/live")
async def liveness():
    """The process is up."""
    return {
        "status": "ALIVE",
        "timestamp": _now(),
        "pid": os.getpid(),
    }
