"""
auth/session.py -- Session cookie contract and stateless session validation.

validate_session() is what dashboard and profile pages call to gate protected
routes. It only checks the token's integrity and freshness: no store access,
no side effects, same answer for the same cookies and clock.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from auth.tokens import SESSION_LIFETIME_SECONDS, TokenCodec, TokenError

SESSION_COOKIE = "session"
NO_SESSION_MESSAGE = "No session token found"


@dataclass(frozen=True)
class SessionCookie:
    """Attributes of the session cookie set on a successful login.

    Framework-neutral; the HTTP adapter maps it onto its own set_cookie().
    """

    value: str
    secure: bool = False
    name: str = SESSION_COOKIE
    max_age: int = SESSION_LIFETIME_SECONDS
    path: str = "/"
    httponly: bool = True
    samesite: str = "Strict"


def session_cookie(token: str, production: bool) -> SessionCookie:
    """Build the login cookie. Secure is only set in production deployments."""
    return SessionCookie(value=token, secure=production)


@dataclass(frozen=True)
class SessionResult:
    is_valid: bool
    player_id: str | None = None
    email: str | None = None
    type: str | None = None
    error: str | None = None


def get_token_from_cookies(cookies: Mapping[str, str]) -> str | None:
    token = cookies.get(SESSION_COOKIE)
    return token or None


def validate_session(cookies: Mapping[str, str], codec: TokenCodec) -> SessionResult:
    """Return the verified session claims carried by the request cookies.

    No cookie -> invalid with "No session token found". A cookie the codec
    rejects -> invalid with the codec's reason (bad signature, expired,
    malformed).
    """
    token = get_token_from_cookies(cookies)
    if token is None:
        return SessionResult(is_valid=False, error=NO_SESSION_MESSAGE)
    try:
        claims = codec.parse(token)
    except TokenError as exc:
        return SessionResult(is_valid=False, error=str(exc))
    return SessionResult(is_valid=True, player_id=claims.player_id, email=claims.email, type=claims.type)
