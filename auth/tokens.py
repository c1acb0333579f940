"""
auth/tokens.py -- Session token codec (signed JWT).

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the server secret from
       Settings.jwt_secret and carry playerId, email, type, iat and exp. The
       secret is process-wide configuration bound at construction; nothing
       here reads the environment.

  Lifetime: fixed 7 days from issuance. There is no server-side token store,
       so a token stays valid until exp. Revocation is out of scope.

  Failures: parse() raises a TokenError subclass instead of returning None so
       callers can tell a tampered token from an expired or garbled one. The
       exception message is safe to show to clients.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from jose import ExpiredSignatureError, JWTError, jwt

from auth.models import PLAYER_TYPE, SessionClaims

ALGORITHM = "HS256"
SESSION_LIFETIME = timedelta(days=7)
SESSION_LIFETIME_SECONDS = int(SESSION_LIFETIME.total_seconds())

_REQUIRED_CLAIMS = ("playerId", "email", "type", "iat", "exp")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TokenError(Exception):
    """Base class for every reason a session token is rejected."""

    reason = "Invalid token"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)


class MalformedTokenError(TokenError):
    reason = "Malformed token"


class InvalidSignatureError(TokenError):
    reason = "Invalid token signature"


class TokenExpiredError(TokenError):
    reason = "Token has expired"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


class TokenCodec:
    """Issue and verify session tokens.

    Usage:
        codec = TokenCodec(settings.jwt_secret)
        token = codec.issue(player.id, player.email)
        claims = codec.parse(token)  # raises TokenError

    clock is injectable so tests can mint tokens that are already expired.
    """

    def __init__(
        self,
        secret: str,
        lifetime: timedelta = SESSION_LIFETIME,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret is required.")
        self._secret = secret
        self.lifetime = lifetime
        self._clock = clock

    def issue(self, player_id: str, email: str, type: str = PLAYER_TYPE) -> str:
        """Encode a signed token for (player_id, email, type), expiring now + lifetime."""
        issued_at = self._clock().replace(microsecond=0)
        payload = {
            "playerId": player_id,
            "email": email,
            "type": type,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.lifetime).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def parse(self, token: str) -> SessionClaims:
        """Verify signature and freshness, then return the decoded claims.

        Check order: structure, signature, expiry, claim shape. A token that is
        both tampered and expired reports the signature failure.
        """
        if not token or not isinstance(token, str):
            raise MalformedTokenError()
        try:
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedTokenError() from exc

        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except JWTError as exc:
            raise InvalidSignatureError() from exc

        if any(payload.get(name) in (None, "") for name in _REQUIRED_CLAIMS):
            raise MalformedTokenError()
        try:
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedTokenError() from exc

        # jose accepts exp == now; a session must end strictly before exp.
        if expires_at <= self._clock():
            raise TokenExpiredError()

        return SessionClaims(
            player_id=str(payload["playerId"]),
            email=str(payload["email"]),
            type=str(payload["type"]),
            issued_at=issued_at,
            expires_at=expires_at,
        )
