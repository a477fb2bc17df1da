"""Middleware for security headers, rate limiting, CORS and request logging."""

import logging
import time
from datetime import UTC, datetime, timedelta

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from auditdesk.core.config import get_settings
from auditdesk.core.metrics import observe_http_request
from auditdesk.core.request_context import new_request_id, request_id_context
from auditdesk.core.structured_logging import log_json

logger = logging.getLogger(__name__)
settings = get_settings()

ADMIN_SETUP_PATH = "/admin-setup"
ADMIN_SETUP_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, content-type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add basic security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")

        if settings.environment == "production":
            forwarded_proto = request.headers.get("x-forwarded-proto")
            scheme = forwarded_proto or request.url.scheme
            if scheme == "https":
                response.headers.setdefault(
                    "Strict-Transport-Security",
                    "max-age=63072000; includeSubDomains",
                )

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP rate limiting for credential and bootstrap endpoints.

    Rate limits (production only):
    - POST /api/auth/login: RATE_LIMIT_LOGIN_PER_MINUTE per IP
    - POST /admin-setup: RATE_LIMIT_SETUP_PER_MINUTE per IP
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        # Storage: {(endpoint, identifier): [(timestamp, count)]}
        self._requests: dict[tuple[str, str], list] = {}

    def _clean_old_requests(self, window: timedelta) -> None:
        """Remove requests outside the time window, and clients left with none."""
        cutoff = datetime.now(UTC) - window
        for key in list(self._requests):
            recent = [(ts, count) for ts, count in self._requests[key] if ts > cutoff]
            if recent:
                self._requests[key] = recent
            else:
                del self._requests[key]

    def _get_request_count(self, endpoint: str, identifier: str, window: timedelta) -> int:
        self._clean_old_requests(window)
        return sum(count for _, count in self._requests.get((endpoint, identifier), []))

    def _add_request(self, endpoint: str, identifier: str) -> None:
        self._requests.setdefault((endpoint, identifier), []).append((datetime.now(UTC), 1))

    def _over_limit(self, endpoint: str, identifier: str, limit: int) -> bool:
        if self._get_request_count(endpoint, identifier, timedelta(minutes=1)) >= limit:
            return True
        self._add_request(endpoint, identifier)
        return False

    async def dispatch(self, request: Request, call_next):
        """Apply rate limiting based on endpoint."""
        if settings.environment != "production" or request.method != "POST":
            return await call_next(request)

        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        if path == "/api/auth/login":
            if self._over_limit("login", client_ip, settings.rate_limit_login_per_minute):
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Too many login attempts. Please try again later."},
                )

        elif path == ADMIN_SETUP_PATH:
            if self._over_limit("admin_setup", client_ip, settings.rate_limit_setup_per_minute):
                return JSONResponse(
                    status_code=429,
                    content={"error": "Too many setup attempts. Please try again later."},
                    headers=ADMIN_SETUP_CORS_HEADERS,
                )

        return await call_next(request)


class ApiCORSMiddleware(CORSMiddleware):
    """CORS for the ``/api`` surface.

    ``/admin-setup`` answers every origin with its own wildcard headers,
    including preflight, so it bypasses the configured allow-list.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"] == ADMIN_SETUP_PATH:
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Request logging middleware with structured logging.

    Logs:
    - Method, path, status code, duration
    - IP address for security
    - Structured JSON format
    """

    async def dispatch(self, request: Request, call_next):
        """Log request details."""
        incoming_request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
        )
        request_id = None
        if incoming_request_id:
            candidate = incoming_request_id.strip()
            if candidate and len(candidate) <= 128 and "\n" not in candidate and "\r" not in candidate:
                request_id = candidate

        if not request_id:
            request_id = new_request_id()

        request.state.request_id = request_id

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        with request_id_context(request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start_time) * 1000
                log_json(
                    logger,
                    logging.ERROR,
                    "request_error",
                    method=method,
                    path=path,
                    status_code=500,
                    duration_ms=round(duration_ms, 2),
                    client_ip=client_ip,
                    error=str(exc),
                    exception=exc.__class__.__name__,
                )
                raise

            response.headers.setdefault("X-Request-ID", request_id)

            duration_ms = (time.perf_counter() - start_time) * 1000

            route_obj = request.scope.get("route")
            route_template = getattr(route_obj, "path", None) if route_obj else None
            if not route_template:
                route_template = "unmatched"

            observe_http_request(
                method=method,
                route=route_template,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

            if response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO

            log_json(
                logger,
                level,
                "request",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                client_ip=client_ip,
            )

            return response
