"""
tests/test_login_handler.py -- Unit tests for LoginHandler.

Security properties under test:
  - Unknown email and wrong password produce byte-identical 401 bodies
  - An unknown email never reaches password verification or token issuance
  - Internal failures answer 500 with a fixed message and set no cookie
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from api.contract import ApiRequest
from api.cors import CorsPolicy
from api.handlers.login import ROUTE, LoginHandler
from api.handlers.registration import build_new_player
from auth.passwords import PasswordHasher
from auth.tokens import TokenCodec

ALLOWED = ["http://localhost:3000", "https://dev.example.com"]
PASSWORD = "Password123!"


def _post(body, origin: str | None = "http://localhost:3000") -> ApiRequest:
    raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    headers = {"Content-Type": "application/json"}
    if origin:
        headers["Origin"] = origin
    return ApiRequest(method="POST", path=ROUTE, headers=headers, body=raw)


@pytest.fixture
def player_id(fake_store: MagicMock, player_payload: dict) -> str:
    """Seed one registered player, then clear the spy's call history."""
    player = build_new_player(player_payload, "john.doe@example.com", PasswordHasher(10).hash(PASSWORD))
    pid = fake_store.insert(player)
    fake_store.reset_mock()
    return pid


@pytest.fixture
def codec_spy(codec: TokenCodec) -> MagicMock:
    return MagicMock(wraps=codec)


def _handler(fake_store, hasher, codec_spy, secure_cookies: bool = False) -> LoginHandler:
    return LoginHandler(
        fake_store,
        hasher,
        codec_spy,
        CorsPolicy(ALLOWED, allow_credentials=True),
        secure_cookies=secure_cookies,
    )


@pytest.fixture
def handler(fake_store, hasher, codec_spy) -> LoginHandler:
    return _handler(fake_store, hasher, codec_spy)


class TestSuccess:
    def test_login_sets_session_cookie(self, handler, player_id, codec) -> None:
        response = handler.handle(_post({"email": "john.doe@example.com", "password": PASSWORD}))

        assert response.status == 200
        assert response.body == {"success": True, "message": "Login successful", "playerId": player_id}
        assert len(response.cookies) == 1
        cookie = response.cookies[0]
        assert cookie.name == "session"
        assert cookie.httponly is True
        assert cookie.samesite == "Strict"
        assert cookie.max_age == 604800
        assert cookie.secure is False

        claims = codec.parse(cookie.value)
        assert claims.player_id == player_id
        assert claims.email == "john.doe@example.com"
        assert claims.type == "player"

    def test_token_not_in_body(self, handler, player_id) -> None:
        response = handler.handle(_post({"email": "john.doe@example.com", "password": PASSWORD}))
        assert response.cookies[0].value not in response.json_bytes().decode()

    def test_email_lookup_ignores_case(self, handler, player_id) -> None:
        response = handler.handle(_post({"email": "John.Doe@EXAMPLE.com", "password": PASSWORD}))
        assert response.status == 200
        assert response.body["playerId"] == player_id

    def test_headers(self, handler, player_id) -> None:
        response = handler.handle(_post({"email": "john.doe@example.com", "password": PASSWORD}))
        assert response.headers["Cache-Control"] == "no-store"
        assert response.headers["Access-Control-Allow-Credentials"] == "true"
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    def test_secure_cookie_in_production(self, fake_store, hasher, codec_spy, player_id) -> None:
        handler = _handler(fake_store, hasher, codec_spy, secure_cookies=True)
        response = handler.handle(_post({"email": "john.doe@example.com", "password": PASSWORD}))
        assert response.cookies[0].secure is True


class TestInvalidCredentials:
    def test_unknown_email_skips_verify_and_issue(self, handler, hasher, codec_spy, player_id) -> None:
        response = handler.handle(_post({"email": "nobody@example.com", "password": PASSWORD}))

        assert response.status == 401
        assert response.body == {"success": False, "message": "Invalid email or password. Please try again."}
        assert response.cookies == []
        hasher.verify.assert_not_called()
        codec_spy.issue.assert_not_called()

    def test_wrong_password(self, handler, codec_spy, player_id) -> None:
        response = handler.handle(_post({"email": "john.doe@example.com", "password": "WrongPass123!"}))
        assert response.status == 401
        assert response.cookies == []
        codec_spy.issue.assert_not_called()

    def test_both_failures_are_indistinguishable(self, handler, player_id) -> None:
        unknown = handler.handle(_post({"email": "nobody@example.com", "password": PASSWORD}))
        wrong = handler.handle(_post({"email": "john.doe@example.com", "password": "WrongPass123!"}))
        assert unknown.status == wrong.status == 401
        assert unknown.json_bytes() == wrong.json_bytes()


class TestRejections:
    def test_invalid_json(self, handler, fake_store) -> None:
        response = handler.handle(_post(b"not json"))
        assert response.status == 400
        assert response.body["message"] == "Invalid JSON in request body"
        assert response.headers["Cache-Control"] == "no-store"
        assert fake_store.method_calls == []

    def test_validation_errors(self, handler, fake_store, hasher) -> None:
        response = handler.handle(_post({"email": "invalid-email", "password": "short"}))
        assert response.status == 400
        assert response.body == {
            "success": False,
            "errors": [
                {"field": "email", "message": "Invalid email format"},
                {"field": "password", "message": "Password must be at least 8 characters"},
            ],
        }
        assert fake_store.method_calls == []
        assert hasher.method_calls == []


class TestFailures:
    def test_store_failure_is_500_without_cookie(self, handler, fake_store) -> None:
        fake_store.find_by_email.side_effect = RuntimeError("statement timeout")

        response = handler.handle(_post({"email": "john.doe@example.com", "password": PASSWORD}))

        assert response.status == 500
        assert response.body == {"success": False, "message": "An error occurred during login"}
        assert response.cookies == []
        assert "timeout" not in response.json_bytes().decode()

    def test_corrupt_stored_hash_is_500_not_401(self, handler, fake_store, player_payload) -> None:
        fake_store.insert(build_new_player(player_payload, "john.doe@example.com", "not-a-bcrypt-hash"))

        response = handler.handle(_post({"email": "john.doe@example.com", "password": PASSWORD}))

        assert response.status == 500
        assert response.cookies == []

    def test_token_failure_is_500(self, handler, codec_spy, player_id) -> None:
        codec_spy.issue.side_effect = RuntimeError("signing failed")
        response = handler.handle(_post({"email": "john.doe@example.com", "password": PASSWORD}))
        assert response.status == 500
        assert response.cookies == []


class TestPreflight:
    def test_options(self, handler, fake_store) -> None:
        request = ApiRequest(method="OPTIONS", path=ROUTE, headers={"Origin": "https://dev.example.com"})
        response = handler.handle(request)
        assert response.status == 200
        assert response.body is None
        assert response.headers["Access-Control-Allow-Origin"] == "https://dev.example.com"
        assert response.headers["Access-Control-Allow-Credentials"] == "true"
        assert fake_store.method_calls == []
