"""
HTTP middleware components for request/response processing.

This module provides middleware for error handling, request timing with
access logging, and security headers with optional rate limiting.
"""

import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ...infrastructure.config.models import SecurityConfig
from ...infrastructure.logging.setup import LoggingManager

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn unhandled exceptions into a JSON 500 response."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        try:
            return await call_next(request)

        except Exception as e:
            logger.exception(
                f"Unhandled error in {request.method} {request.url.path}: {e}")

            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "message": str(e) if request.app.debug else "An unexpected error occurred",
                    "request_id": getattr(request.state, "request_id", None)
                }
            )


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, time it and write an access log entry."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        start_time = time.perf_counter()

        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        container = getattr(request.app.state, "container", None)
        logging_manager = container.try_resolve(LoggingManager) if container else None
        if logging_manager is not None:
            logging_manager.log_access(
                f"{request.method} {request.url.path} {response.status_code}",
                duration=duration,
                status_code=response.status_code,
                request_id=request_id
            )

        return response


class SecurityMiddleware(BaseHTTPMiddleware):
    """Add security headers and apply per-client rate limiting."""

    def __init__(self, app: Any, config: SecurityConfig) -> None:
        super().__init__(app)
        self.config = config
        self.rate_limit_store: Dict[str, List[float]] = {}
        self._last_purge = time.time()

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        if self.config.rate_limit_enabled and not self._check_rate_limit(request):
            return JSONResponse(
                status_code=429,
                content={"error": "rate_limited", "message": "Too many requests"}
            )

        response = await call_next(request)
        self._add_security_headers(response)
        return response

    def _check_rate_limit(self, request: Request) -> bool:
        """Check if the client is within its request window."""
        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.config.rate_limit_window

        if now - self._last_purge >= self.config.rate_limit_window:
            self._purge_expired(window_start)
            self._last_purge = now

        requests = [t for t in self.rate_limit_store.get(client_ip, []) if t > window_start]
        if len(requests) >= self.config.rate_limit_requests:
            self.rate_limit_store[client_ip] = requests
            return False

        requests.append(now)
        self.rate_limit_store[client_ip] = requests
        return True

    def _purge_expired(self, window_start: float) -> None:
        """Forget clients with no request inside the current window."""
        expired = [ip for ip, times in self.rate_limit_store.items()
                   if not times or times[-1] <= window_start]
        for ip in expired:
            del self.rate_limit_store[ip]

    def _add_security_headers(self, response: Response) -> None:
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
