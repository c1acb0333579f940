"""
tests/test_tokens.py -- Unit tests for auth/tokens.py (session token codec).

Covers:
  - issue/parse round trip and claim contents
  - 7-day lifetime
  - Expired, tampered, foreign-secret and garbage tokens raise the matching
    TokenError subclass with a client-safe message
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.tokens import (
    ALGORITHM,
    SESSION_LIFETIME,
    InvalidSignatureError,
    MalformedTokenError,
    TokenCodec,
    TokenError,
    TokenExpiredError,
)

SECRET = "unit-test-secret-0123456789abcdef0123456789"
OTHER_SECRET = "another-secret-0123456789abcdef0123456789ab"


def _fixed_clock(moment: datetime):
    return lambda: moment


class TestIssueAndParse:
    def test_round_trip(self) -> None:
        codec = TokenCodec(SECRET)
        claims = codec.parse(codec.issue("player-1", "john.doe@example.com"))
        assert claims.player_id == "player-1"
        assert claims.email == "john.doe@example.com"
        assert claims.type == "player"

    def test_lifetime_is_seven_days(self) -> None:
        codec = TokenCodec(SECRET)
        claims = codec.parse(codec.issue("player-1", "john.doe@example.com"))
        assert claims.expires_at - claims.issued_at == timedelta(days=7)
        assert SESSION_LIFETIME == timedelta(days=7)

    def test_payload_carries_wire_claim_names(self) -> None:
        token = TokenCodec(SECRET).issue("player-1", "john.doe@example.com")
        payload = jwt.get_unverified_claims(token)
        assert set(payload) == {"playerId", "email", "type", "iat", "exp"}

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenCodec("")


class TestRejections:
    def test_expired_token(self) -> None:
        past = datetime.now(timezone.utc) - timedelta(days=8)
        token = TokenCodec(SECRET, clock=_fixed_clock(past)).issue("player-1", "a@b.co")
        with pytest.raises(TokenExpiredError, match="Token has expired"):
            TokenCodec(SECRET).parse(token)

    def test_token_at_exact_expiry_is_expired(self) -> None:
        issued = datetime(2026, 1, 1, tzinfo=timezone.utc)
        token = TokenCodec(SECRET, clock=_fixed_clock(issued)).issue("player-1", "a@b.co")
        checker = TokenCodec(SECRET, clock=_fixed_clock(issued + SESSION_LIFETIME))
        with pytest.raises(TokenError):
            checker.parse(token)

    def test_foreign_secret(self) -> None:
        token = TokenCodec(OTHER_SECRET).issue("player-1", "a@b.co")
        with pytest.raises(InvalidSignatureError, match="Invalid token signature"):
            TokenCodec(SECRET).parse(token)

    def test_tampered_payload(self) -> None:
        codec = TokenCodec(SECRET)
        header, _payload, signature = codec.issue("player-1", "a@b.co").split(".")
        forged_payload = jwt.encode(
            {"playerId": "player-2", "email": "a@b.co", "type": "player", "iat": 1, "exp": 4102444800},
            OTHER_SECRET,
            algorithm=ALGORITHM,
        ).split(".")[1]
        with pytest.raises(InvalidSignatureError):
            codec.parse(f"{header}.{forged_payload}.{signature}")

    @pytest.mark.parametrize("token", ["", "not-a-token", "a.b", "a.b.c"])
    def test_garbage(self, token: str) -> None:
        with pytest.raises(MalformedTokenError, match="Malformed token"):
            TokenCodec(SECRET).parse(token)

    def test_missing_claim_is_malformed(self) -> None:
        token = jwt.encode({"email": "a@b.co", "type": "player", "iat": 1, "exp": 4102444800}, SECRET, ALGORITHM)
        with pytest.raises(MalformedTokenError):
            TokenCodec(SECRET).parse(token)
