"""
auth/dependencies.py -- FastAPI Depends() helpers for session-gated routes.

Dashboard and profile routes (outside this service's core) gate access with
require_player_session(). It verifies the "session" cookie with the token
codec the application built at startup (app.state.token_codec); there is no
store lookup, so a valid token is trusted until it expires.

try_get_session() is the soft variant (returns None on failure).
require_player_session() wraps the same check and raises HTTP 401 with the
codec's reason, or 403 when the token is not a player token.

Layer rule: auth/dependencies.py may import from fastapi because it is part
of the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import PLAYER_TYPE, SessionClaims
from auth.session import NO_SESSION_MESSAGE, get_token_from_cookies
from auth.tokens import TokenCodec, TokenError


def _codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def try_get_session(request: Request) -> SessionClaims | None:
    """Return verified claims from the session cookie, or None. Never raises."""
    token = get_token_from_cookies(request.cookies)
    if token is None:
        return None
    try:
        return _codec(request).parse(token)
    except TokenError:
        return None


def require_player_session(request: Request) -> SessionClaims:
    """Require a valid player session.

    Use as a FastAPI dependency:
        @router.get("/player/dashboard")
        async def route(claims: SessionClaims = Depends(require_player_session)): ...
    """
    token = get_token_from_cookies(request.cookies)
    if token is None:
        raise HTTPException(status_code=401, detail=NO_SESSION_MESSAGE)
    try:
        claims = _codec(request).parse(token)
    except TokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    if claims.type != PLAYER_TYPE:
        raise HTTPException(status_code=403, detail="Player session required")
    return claims
