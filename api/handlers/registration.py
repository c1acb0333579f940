"""
api/handlers/registration.py -- POST/OPTIONS /api/auth/register/player.

Pipeline: parse JSON -> validate every field -> normalize email ->
duplicate check -> hash password -> insert.

Side-effect guarantees:
  Malformed JSON and validation failures return before the store or the
  hasher is touched. A duplicate email returns before hashing. A failing
  hash aborts before insert. Any unexpected failure from the store or the
  hasher becomes a 500 with a fixed message; the exception is logged with
  its traceback and never echoed to the client.
"""

from __future__ import annotations

import json
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
from api.models import RegisterResponse
from auth.models import NewPlayer
from auth.passwords import PasswordHasher
from auth.store import DuplicateEmailError, PlayerStore
from core.validation import normalize_email, validate_player_registration

logger = logging.getLogger("athletebase.api.register")

ROUTE = "/api/auth/register/player"

INVALID_JSON_MESSAGE = "Invalid JSON in request body"
EMAIL_TAKEN_MESSAGE = "Email already registered"
REGISTRATION_FAILED_MESSAGE = "An error occurred during registration"


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    return json.dumps(value)


def _optional_number(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def build_new_player(payload: Mapping[str, Any], email: str, password_hash: str) -> NewPlayer:
    """Map a validated registration payload onto the insert struct."""
    return NewPlayer(
        first_name=payload["firstName"].strip(),
        last_name=payload["lastName"].strip(),
        email=email,
        password_hash=password_hash,
        sex=payload["sex"],
        sport=payload["sport"].strip(),
        position=payload["position"].strip(),
        gpa=float(payload["gpa"]),
        country=payload["country"].strip(),
        state=_optional_text(payload.get("state")),
        region=_optional_text(payload.get("region")),
        scholarship_amount=_optional_number(payload.get("scholarshipAmount")),
        test_scores=_optional_text(payload.get("testScores")),
    )


class RegistrationHandler:
    """Player registration, independent of any web framework.

    Usage:
        handler = RegistrationHandler(store, PasswordHasher(settings.bcrypt_rounds), CorsPolicy(origins))
        response = handler.handle(ApiRequest("POST", ROUTE, headers, cookies, body))
    """

    def __init__(self, store: PlayerStore, hasher: PasswordHasher, cors: CorsPolicy) -> None:
        self.store = store
        self.hasher = hasher
        self.cors = cors

    def handle(self, request: ApiRequest) -> ApiResponse:
        if request.method == "OPTIONS":
            return self.cors.preflight(request)

        request_id = uuid.uuid4().hex
        start = time.perf_counter()
        logger.info("POST %s started request_id=%s", ROUTE, request_id)

        response = self._register(request, request_id)

        ms = (time.perf_counter() - start) * 1000
        logger.info("POST %s %d %.1fms request_id=%s", ROUTE, response.status, ms, request_id)
        return self.cors.apply(response, request)

    def _register(self, request: ApiRequest, request_id: str) -> ApiResponse:
        try:
            payload = request.json_object()
        except InvalidJSONError:
            logger.warning("Failed to parse request body request_id=%s", request_id)
            return message_response(400, INVALID_JSON_MESSAGE)

        validation = validate_player_registration(payload)
        if not validation.is_valid:
            logger.info(
                "Player registration validation failed request_id=%s fields=%s",
                request_id,
                ",".join(e.field for e in validation.errors),
            )
            return errors_response(validation.errors)

        try:
            return self._create_player(payload, request_id)
        except Exception:
            logger.exception("Unexpected error during registration request_id=%s", request_id)
            return message_response(500, REGISTRATION_FAILED_MESSAGE)

    def _create_player(self, payload: Mapping[str, Any], request_id: str) -> ApiResponse:
        email = normalize_email(payload["email"])

        if self.store.exists_by_email(email):
            logger.warning("Duplicate email registration attempt request_id=%s", request_id)
            return message_response(409, EMAIL_TAKEN_MESSAGE)

        password_hash = self.hasher.hash(payload["password"])

        try:
            player_id = self.store.insert(build_new_player(payload, email, password_hash))
        except DuplicateEmailError:
            # Lost a race with a concurrent registration for the same email.
            logger.warning("Duplicate email rejected by store request_id=%s", request_id)
            return message_response(409, EMAIL_TAKEN_MESSAGE)

        logger.info("Player registered request_id=%s player_id=%s", request_id, player_id)
        return json_response(201, RegisterResponse(player_id=player_id).model_dump(by_alias=True))
