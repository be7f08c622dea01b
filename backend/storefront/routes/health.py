"""
Storefront Backend — Health Check Route
=========================================

What:  Liveness/readiness probe for Docker and load balancers.
How:   Runs `SELECT 1` on the engine created at startup.

Status levels:
    healthy:   database reachable (HTTP 200)
    unhealthy: database unreachable (HTTP 503, stop routing traffic)

The asset store is not probed: every probe would spend API quota, and a
Cloudinary outage only affects image writes, not reads.
"""

import logging
import time

from fastapi import APIRouter, Request, Response
from sqlalchemy import text

from storefront import __version__
from storefront.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request, response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
