"""
api/main.py -- FastAPI application entry point for the player auth service.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. log_requests          -- method, path, status, latency for every request

CORS is answered per route by api/cors.py, not by CORSMiddleware.

Lifespan builds the credential store and the auth handlers from Settings at
startup and disposes the store on shutdown. Handlers never read the
environment themselves.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from api.contract import ApiRequest, message_response
from api.handlers.factory import build_auth_handlers
from api.limiter import limiter
from api.models import HealthComponents, HealthResponse, MessageResponse
from api.routes.auth import router as auth_router
from api.routes.auth import to_response
from auth.store import SqlPlayerStore
from core.config import get_settings

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("athletebase.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The store is created first because the handlers hold it.
    """
    logger.info("Auth API starting up (environment=%s)", _settings.environment)
    app.state.settings = _settings
    app.state.player_store = SqlPlayerStore(
        _settings.database_url,
        timeout_seconds=_settings.database_timeout_seconds,
        pool_size=_settings.database_pool_size,
    )
    app.state.auth_handlers = build_auth_handlers(_settings, app.state.player_store)
    app.state.token_codec = app.state.auth_handlers.codec
    logger.info("Credential store and auth handlers initialized")

    yield

    app.state.player_store.close()
    logger.info("Auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Athlete Base Auth API",
    description="Player registration, login and session validation.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.trusted_host_list)

# slowapi looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error body uses the {success: false, message} envelope the auth
# handlers already return, so clients parse one shape.
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Return 429 with Retry-After when a client exceeds the login limit.

    The login CORS policy still applies so browsers can read the message.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    api_response = message_response(429, "Too many requests. Please try again later.")
    api_response.headers["Retry-After"] = str(retry_after)
    api_response.headers["Cache-Control"] = "no-store"
    cors_request = ApiRequest(method=request.method, path=request.url.path, headers=dict(request.headers))
    return to_response(request.app.state.auth_handlers.login.cors.apply(api_response, cors_request))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=MessageResponse(message=str(exc.detail)).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=MessageResponse(message="An unexpected error occurred").model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is reachable regardless of router
# registration state. No rate limit: load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness plus a cheap credential-store ping. Always 200.

    Sync def: the store ping blocks, so FastAPI runs this in the threadpool.
    """
    store = request.app.state.player_store
    database_ok = store.ping()
    return HealthResponse(
        status="ok" if database_ok else "degraded",
        version=VERSION,
        environment=request.app.state.settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat(),
        components=HealthComponents(database="ok" if database_ok else "error"),
    )
