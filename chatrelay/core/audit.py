"""
Audit Middleware - Request/response logging for monitoring.

Logs method, path, status code, duration, client address, owner id and
conversation id (when present in the query string) for every request.
"""
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chatrelay.core.logging_config import get_logger

logger = get_logger(__name__)

QUIET_PATHS = ("/health", "/health/ready", "/health/providers")


class AuditMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging all requests and responses.

    Adds an X-Response-Time header to every response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log audit information."""
        start_time = time.time()

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"
        owner = request.headers.get("x-user-id", "-")
        conversation = request.query_params.get("conversationId", "")[:8] or "-"

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"REQUEST FAILED: {method} {path} "
                f"client={client_ip} duration={duration:.3f}s error={str(e)}"
            )
            raise

        duration = time.time() - start_time
        self._log_request(
            method=method,
            path=path,
            status_code=response.status_code,
            duration=duration,
            client_ip=client_ip,
            owner=owner,
            conversation=conversation,
        )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response

    def _log_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration: float,
        client_ip: str,
        owner: str,
        conversation: str,
    ) -> None:
        """Log request details."""
        if path in QUIET_PATHS:
            logger.debug(
                f"HEALTH: {path} status={status_code} duration={duration:.3f}s"
            )
            return

        if status_code >= 500:
            log_fn = logger.error
        elif status_code >= 400:
            log_fn = logger.warning
        else:
            log_fn = logger.info

        log_fn(
            f"REQUEST: {method} {path} "
            f"status={status_code} duration={duration:.3f}s "
            f"client={client_ip} owner={owner} conversation={conversation}"
        )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers to all responses.

    Headers added:
    - X-Content-Type-Options: nosniff
    - X-Frame-Options: DENY
    - Referrer-Policy: strict-origin-when-cross-origin
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Add security headers to response."""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response
