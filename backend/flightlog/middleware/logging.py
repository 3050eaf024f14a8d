"""
FlightLog Backend: Request Logging Middleware
==============================================

What:  One access log line per request: method, path, status, duration,
       request id and client IP.
How:   Logged under the `flightlog.access` logger with the same fields in
       `extra` for structured handlers. Level follows the status class:
       5xx → ERROR, 4xx → WARNING, otherwise INFO.

Typical durations:
    - GET /api/places/{id} cache hit:  5-20ms
    - GET /api/places/{id} cache miss: 300-2000ms (detail + photo fan-out)
    - GET /airports:                   20-80ms

Not logged: request bodies and headers (API keys travel in query strings of
outbound photo URLs only, never in inbound requests).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from flightlog.middleware.request_id import request_id_var

logger = logging.getLogger("flightlog.access")

# Probed every few seconds; logging them buries real traffic
QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
