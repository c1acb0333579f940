"""
api/cors.py -- CORS headers for the auth endpoints.

The auth routes answer CORS themselves rather than through Starlette's
CORSMiddleware: the fallback rule here (unknown origin -> first allowed
origin, no allow-list -> "*") and the per-endpoint credentials flag are not
something the middleware can express.
"""

from __future__ import annotations

from typing import Sequence

from api.contract import ApiRequest, ApiResponse

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type"


def resolve_allowed_origin(origin: str | None, allowed_origins: Sequence[str]) -> str:
    """Echo a listed origin, else fall back to the first listed one, else "*"."""
    if origin and origin in allowed_origins:
        return origin
    return allowed_origins[0] if allowed_origins else "*"


def _add_vary(response: ApiResponse, name: str) -> None:
    existing = [v.strip() for v in response.headers.get("Vary", "").split(",") if v.strip()]
    if name.lower() not in (v.lower() for v in existing):
        existing.append(name)
    response.headers["Vary"] = ", ".join(existing)


class CorsPolicy:
    def __init__(self, allowed_origins: Sequence[str], allow_credentials: bool = False) -> None:
        self.allowed_origins = list(allowed_origins)
        self.allow_credentials = allow_credentials

    def apply(self, response: ApiResponse, request: ApiRequest) -> ApiResponse:
        response.headers["Access-Control-Allow-Origin"] = resolve_allowed_origin(
            request.header("origin"), self.allowed_origins
        )
        response.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
        if self.allow_credentials:
            response.headers["Access-Control-Allow-Credentials"] = "true"
        # Allow-Origin varies with the request Origin.
        _add_vary(response, "Origin")
        return response

    def preflight(self, request: ApiRequest) -> ApiResponse:
        """OPTIONS answer: 200, empty body, same header set. No validation, no store."""
        return self.apply(ApiResponse(status=200), request)
