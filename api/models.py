"""
API response models for the player auth endpoints.

These Pydantic v2 models define the JSON wire contract. They are kept
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Handlers map between the two.

Field names are snake_case in Python and camelCase on the wire
(serialization_alias); always dump with by_alias=True.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class FieldError(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class MessageResponse(BaseModel):
    """{success, message} -- every non-validation error plus plain successes."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    message: str


class ValidationErrorResponse(BaseModel):
    """400 body when one or more field rules fail."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    errors: list[FieldError]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterResponse(BaseModel):
    """201 body for POST /api/auth/register/player."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Player registered successfully"
    player_id: str = Field(serialization_alias="playerId")


class LoginResponse(BaseModel):
    """200 body for POST /api/auth/login/player. The token travels only in the cookie."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Login successful"
    player_id: str = Field(serialization_alias="playerId")


class SessionResponse(BaseModel):
    """Body for GET /api/auth/session."""

    model_config = ConfigDict(frozen=True)

    is_valid: bool = Field(serialization_alias="isValid")
    player_id: Optional[str] = Field(default=None, serialization_alias="playerId")
    email: Optional[str] = None
    type: Optional[str] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthComponents(BaseModel):
    model_config = ConfigDict(frozen=True)

    app: str = "ok"
    database: str


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    environment: str
    timestamp: str
    components: HealthComponents
