"""Voxmail - voice notes by email, transcribed."""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from app.config import get_settings
from app.middleware import (
    BodySizeLimitMiddleware,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
    body_limits,
)
from app.rate_limit import limiter
from app.routers import background_router, events_router, inbound_router, preferences_router, transcribe_router

VERSION = "0.1.0"

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("voxmail")

for warning in settings.validate():
    logger.warning("Config: %s", warning)

app = FastAPI(title="Voxmail", version=VERSION)
app.state.limiter = limiter

# Last added runs first
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(BodySizeLimitMiddleware, limits=body_limits(settings))
app.add_middleware(RequestContextMiddleware)

app.include_router(inbound_router)
app.include_router(background_router)
app.include_router(transcribe_router)
app.include_router(preferences_router)
app.include_router(events_router)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Per-IP limit %s hit on %s", exc.detail, request.url.path)
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded. Try again later."})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Every HTTP error as ``{"detail": ...}``, keeping headers such as Retry-After."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


@app.get("/api/health")
def health_check() -> dict:
    return {"status": "ok", "app": "voxmail", "version": VERSION}
