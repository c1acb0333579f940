"""
api/routes/auth.py -- FastAPI adapter for the player auth endpoints.

Routes:
  POST    /api/auth/register/player  -- registration (201/400/409/500)
  OPTIONS /api/auth/register/player  -- CORS preflight
  POST    /api/auth/login/player     -- login; sets the session cookie (200/400/401/500)
  OPTIONS /api/auth/login/player     -- CORS preflight
  GET     /api/auth/session          -- session validation for dashboard/profile pages

The handlers in api/handlers/ hold all behavior. This module only converts
between Starlette objects and ApiRequest/ApiResponse, and runs the handlers
in the threadpool so bcrypt does not block the event loop.

Security:
  POST /login/player is rate-limited per client address (Settings.login_rate_limit).
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.contract import ApiRequest, ApiResponse
from api.handlers.factory import AuthHandlers
from api.limiter import limiter
from api.models import SessionResponse
from auth.session import validate_session
from core.config import get_settings

router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------


async def _to_api_request(request: Request) -> ApiRequest:
    return ApiRequest(
        method=request.method,
        path=request.url.path,
        headers=dict(request.headers),
        cookies=dict(request.cookies),
        body=await request.body(),
    )


def to_response(api_response: ApiResponse) -> Response:
    resp = Response(content=api_response.json_bytes(), status_code=api_response.status)
    for name, value in api_response.headers.items():
        resp.headers[name] = value
    for cookie in api_response.cookies:
        resp.set_cookie(
            cookie.name,
            value=cookie.value,
            max_age=cookie.max_age,
            path=cookie.path,
            httponly=cookie.httponly,
            samesite=cookie.samesite,
            secure=cookie.secure,
        )
    return resp


def _handlers(request: Request) -> AuthHandlers:
    return request.app.state.auth_handlers


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@router.api_route("/auth/register/player", methods=["POST", "OPTIONS"])
async def register_player(request: Request) -> Response:
    """Register a player account. OPTIONS answers the CORS preflight."""
    handler = _handlers(request).registration
    api_response = await run_in_threadpool(handler.handle, await _to_api_request(request))
    return to_response(api_response)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


@router.post("/auth/login/player")
@limiter.limit(_login_rate_limit)
async def login_player(request: Request) -> Response:
    """Verify credentials and set the session cookie.

    Unknown email and wrong password share one 401 body.
    """
    handler = _handlers(request).login
    api_response = await run_in_threadpool(handler.handle, await _to_api_request(request))
    return to_response(api_response)


@router.options("/auth/login/player")
async def login_player_preflight(request: Request) -> Response:
    """CORS preflight for login. Not rate-limited; never touches the store."""
    handler = _handlers(request).login
    return to_response(handler.handle(await _to_api_request(request)))


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@router.get("/auth/session", response_model=SessionResponse)
async def session(request: Request) -> JSONResponse:
    """Report whether the request carries a valid session cookie.

    Stateless: verifies the token signature and expiry only, no store access.
    """
    result = validate_session(request.cookies, request.app.state.token_codec)
    body = SessionResponse(
        is_valid=result.is_valid,
        player_id=result.player_id,
        email=result.email,
        type=result.type,
        error=result.error,
    )
    return JSONResponse(
        status_code=200 if result.is_valid else 401,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )
