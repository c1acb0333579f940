"""
api/handlers/login.py -- POST/OPTIONS /api/auth/login/player.

Pipeline: parse JSON -> login validation -> lookup by email -> verify
password -> issue token -> set session cookie.

Security:
  Unknown email and wrong password return byte-identical 401 bodies, so the
  response never reveals whether an account exists. An unknown email stops
  before password verification and token issuance.

  Cache-Control: no-store on every login response.

  Store, hash and token failures are 500 with a fixed message. The
  exception is logged server-side only, and no cookie is set.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Mapping

from api.contract import (
    ApiRequest,
    ApiResponse,
    InvalidJSONError,
    errors_response,
    json_response,
    message_response,
)
from api.cors import CorsPolicy
from api.models import LoginResponse
from auth.models import PLAYER_TYPE
from auth.passwords import PasswordHasher
from auth.session import session_cookie
from auth.store import PlayerStore
from auth.tokens import TokenCodec
from core.validation import validate_login

logger = logging.getLogger("athletebase.api.login")

ROUTE = "/api/auth/login/player"

INVALID_JSON_MESSAGE = "Invalid JSON in request body"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password. Please try again."
LOGIN_FAILED_MESSAGE = "An error occurred during login"


class LoginHandler:
    """Player login, independent of any web framework.

    Usage:
        handler = LoginHandler(store, hasher, TokenCodec(secret), CorsPolicy(origins, True), secure_cookies=False)
        response = handler.handle(ApiRequest("POST", ROUTE, headers, cookies, body))
    """

    def __init__(
        self,
        store: PlayerStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
        cors: CorsPolicy,
        secure_cookies: bool = False,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.codec = codec
        self.cors = cors
        self.secure_cookies = secure_cookies

    def handle(self, request: ApiRequest) -> ApiResponse:
        if request.method == "OPTIONS":
            return self.cors.preflight(request)

        request_id = uuid.uuid4().hex
        start = time.perf_counter()
        logger.info("POST %s started request_id=%s", ROUTE, request_id)

        response = self._login(request, request_id)
        response.headers["Cache-Control"] = "no-store"

        ms = (time.perf_counter() - start) * 1000
        logger.info("POST %s %d %.1fms request_id=%s", ROUTE, response.status, ms, request_id)
        return self.cors.apply(response, request)

    def _login(self, request: ApiRequest, request_id: str) -> ApiResponse:
        try:
            payload = request.json_object()
        except InvalidJSONError:
            logger.warning("Failed to parse request body request_id=%s", request_id)
            return message_response(400, INVALID_JSON_MESSAGE)

        validation = validate_login(payload)
        if not validation.is_valid:
            logger.info(
                "Player login validation failed request_id=%s fields=%s",
                request_id,
                ",".join(e.field for e in validation.errors),
            )
            return errors_response(validation.errors)

        try:
            return self._authenticate(payload, request_id)
        except Exception:
            logger.exception("Unexpected error during login request_id=%s", request_id)
            return message_response(500, LOGIN_FAILED_MESSAGE)

    def _authenticate(self, payload: Mapping[str, Any], request_id: str) -> ApiResponse:
        # The store lookup is case-insensitive; the raw address is passed as submitted.
        player = self.store.find_by_email(payload["email"])
        if player is None:
            logger.warning("Login attempt with non-existent email request_id=%s", request_id)
            return message_response(401, INVALID_CREDENTIALS_MESSAGE)

        if not self.hasher.verify(payload["password"], player.password_hash):
            logger.warning("Login attempt with invalid password request_id=%s player_id=%s", request_id, player.id)
            return message_response(401, INVALID_CREDENTIALS_MESSAGE)

        token = self.codec.issue(player.id, player.email, PLAYER_TYPE)

        logger.info("Player logged in request_id=%s player_id=%s", request_id, player.id)
        response = json_response(200, LoginResponse(player_id=player.id).model_dump(by_alias=True))
        response.cookies.append(session_cookie(token, self.secure_cookies))
        return response
