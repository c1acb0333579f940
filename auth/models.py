"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, codec and handlers do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

PLAYER_TYPE = "player"


@dataclass
class NewPlayer:
    """Everything the Registration Handler hands to the store for insert.

    email is already normalized (trimmed, lowercased). password_hash is the
    bcrypt output -- the plaintext never reaches this object.
    """

    first_name: str
    last_name: str
    email: str
    password_hash: str
    sex: str  # "male" | "female"
    sport: str
    position: str
    gpa: float
    country: str
    state: str | None = None  # required iff country is USA
    region: str | None = None  # required iff country is not USA
    scholarship_amount: float | None = None
    test_scores: str | None = None


@dataclass
class PlayerRecord:
    """A persisted player row.

    created_at / updated_at are ISO 8601 UTC strings, as written by the store.
    Only out-of-scope profile editing flows ever change updated_at.
    """

    id: str
    first_name: str
    last_name: str
    email: str
    password_hash: str
    sex: str
    sport: str
    position: str
    gpa: float
    country: str
    state: str | None = None
    region: str | None = None
    scholarship_amount: float | None = None
    test_scores: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class SessionClaims:
    """Decoded, verified contents of a session token.

    Never persisted. A SessionClaims instance only exists after the codec has
    checked the signature and that expires_at is still in the future.
    """

    player_id: str
    email: str
    type: str
    issued_at: datetime
    expires_at: datetime
