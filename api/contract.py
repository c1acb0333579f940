"""
api/contract.py -- Framework-neutral request/response structs for the auth handlers.

The registration, login and preflight handlers take an ApiRequest and return
an ApiResponse. Nothing in them knows about FastAPI or Starlette, so the same
handler objects can sit behind any HTTP server; api/routes/ is the only place
that converts to and from framework types.

Header names in ApiRequest.headers are lowercased on construction.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from api.models import FieldError, MessageResponse, ValidationErrorResponse
from auth.session import SessionCookie
from core.models import ValidationError

JSON_CONTENT_TYPE = "application/json"


class InvalidJSONError(ValueError):
    """Request body is not parseable JSON."""


@dataclass
class ApiRequest:
    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    def json_object(self) -> dict[str, Any]:
        """Decode the body as JSON.

        Raises InvalidJSONError for an empty or unparseable body. Valid JSON
        that is not an object decodes to an empty payload, so the caller's
        validation reports every required field as missing.
        """
        try:
            data = json.loads(self.body or b"")
        except ValueError as exc:
            # JSONDecodeError, UnicodeDecodeError and the integer digit limit are all ValueErrors.
            raise InvalidJSONError("Invalid JSON in request body") from exc
        return data if isinstance(data, dict) else {}


@dataclass
class ApiResponse:
    status: int
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)
    cookies: list[SessionCookie] = field(default_factory=list)

    def json_bytes(self) -> bytes:
        if self.body is None:
            return b""
        return json.dumps(self.body, separators=(",", ":")).encode("utf-8")


def json_response(status: int, body: Mapping[str, Any]) -> ApiResponse:
    return ApiResponse(status=status, body=dict(body), headers={"Content-Type": JSON_CONTENT_TYPE})


def message_response(status: int, message: str) -> ApiResponse:
    return json_response(status, MessageResponse(message=message).model_dump())


def errors_response(errors: list[ValidationError]) -> ApiResponse:
    body = ValidationErrorResponse(errors=[FieldError(field=e.field, message=e.message) for e in errors])
    return json_response(400, body.model_dump())
