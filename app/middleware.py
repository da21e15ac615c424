"""HTTP middleware: request ids, audit log, body ceilings and response headers."""

import logging
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import Settings

logger = logging.getLogger("voxmail.http")

MB = 1024 * 1024

# Writes worth an audit line; reads are not logged
AUDITED_PREFIXES = (
    "/api/v1/inbound",
    "/api/v1/transcribe",
    "/api/v1/background",
    "/api/v1/preferences",
)


def body_limits(settings: Settings) -> list[tuple[str, int]]:
    """Per-prefix request body ceilings, longest prefix first."""
    audio = settings.max_file_size_bytes
    return [
        # The whole email: an inline attachment plus headers and bodies
        ("/api/v1/inbound", audio + 10 * MB),
        ("/api/v1/transcribe", audio + MB),
        ("/api/v1/background", 2 * MB),
        ("/", MB),
    ]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and writes an audit line for mutating calls."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id

        if request.method in ("POST", "PUT") and request.url.path.startswith(AUDITED_PREFIXES):
            logger.info(
                "AUDIT [%s] %s %s -> %d in %.0fms (client %s)",
                request_id,
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                request.client.host if request.client else "-",
            )
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose declared body exceeds the ceiling for their path."""

    def __init__(self, app, limits: list[tuple[str, int]]) -> None:
        super().__init__(app)
        self.limits = limits

    def limit_for(self, path: str) -> int:
        return next(limit for prefix, limit in self.limits if path.startswith(prefix))

    async def dispatch(self, request: Request, call_next) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.limit_for(request.url.path):
            logger.warning("Rejected %s %s: body of %s bytes", request.method, request.url.path, declared)
            return JSONResponse(status_code=413, content={"detail": "Request body too large"})
        return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """API responses are never framed, sniffed or cached."""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        "Cache-Control": "no-store",
    }

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(self.HEADERS)
        return response
