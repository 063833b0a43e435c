"""
Logging middleware for request/response tracking.

The request id is bound into structlog's context variables, so every
ledger, store and compensation event logged while serving the request
carries it. A caller-supplied X-Request-ID is kept so a client retrying a
sale can be traced across attempts.
"""

import time
import uuid
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.config import get_logger

logger = get_logger(__name__)

# Probes hit these constantly; they are logged at debug only
QUIET_PATHS = ("/health", "/api/health")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start, completion and timing."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        log = logger.debug if request.url.path.startswith(QUIET_PATHS) else logger.info

        start = time.perf_counter()
        log("request_started", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000
            log(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round(duration_ms, 2),
            )
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
