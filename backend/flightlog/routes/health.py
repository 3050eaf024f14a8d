"""
FlightLog Backend: Health Check Route
======================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the database and reports whether place service
       credentials are configured.
Who:   Called by Docker health checks, load balancers and monitoring systems.

Status levels:
    - healthy:   Database reachable and place service configured (HTTP 200)
    - degraded:  Database reachable but no place service key; cached places
                 are still served, misses fail (HTTP 200)
    - unhealthy: Database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response

from flightlog import __version__
from flightlog.config import settings
from flightlog.database import ping_database
from flightlog.schemas.place import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the backend service and its dependencies. "
        "Used by Docker health checks and load balancers."
    ),
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    places_status = "configured"
    overall = "healthy"

    try:
        await ping_database()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    if not settings.places_api_configured:
        places_status = "not_configured"
        if overall == "healthy":
            overall = "degraded"

    if overall == "unhealthy":
        response.status_code = 503

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        places_api=places_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
