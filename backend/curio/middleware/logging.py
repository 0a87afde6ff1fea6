"""
Curio Backend — Request Logging Middleware
===========================================

What:  One access line per request on the `curio.access` logger.
How:   Measures wall time around the handler and logs method, path, status,
       duration, request id and client address. 5xx logs at ERROR, 4xx at
       WARNING, everything else at INFO.

Quiet paths:
    - /health is never logged (probed every few seconds)
    - successful layout PATCHes log at DEBUG: the canvas autosaves after
      every pause in editing, which would drown the access log
    Request bodies are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from curio.middleware.request_id import request_id_var

logger = logging.getLogger("curio.access")

QUIET_PATHS = {"/health"}
AUTOSAVE_SUFFIX = "/atelier-layout"


def access_level(method: str, path: str, status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    if method == "PATCH" and path.endswith(AUTOSAVE_SUFFIX):
        return logging.DEBUG
    return logging.INFO


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

        method = request.method
        status = response.status_code
        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"

        logger.log(
            access_level(method, path, status),
            "%s %s %d %.1fms [%s] from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
