"""
auth/passwords.py -- One-way password hashing (bcrypt).

Security design decisions:
  bcrypt via the bcrypt package directly (no passlib wrapper). gensalt() gives
  every call a fresh random salt, so hashing the same plaintext twice yields
  two different hashes. checkpw() compares in constant time.

  The cost factor comes from Settings.bcrypt_rounds, which the config layer
  pins to [10, 16].

  bcrypt only looks at the first 72 bytes of its input (and bcrypt >= 5
  raises on longer input). The plaintext is therefore pre-hashed with SHA-256
  and the 64-char hex digest is what bcrypt sees. Long passphrases keep all of
  their entropy and never fail.

Errors are NOT swallowed here. A corrupt stored hash makes checkpw() raise
ValueError, and that must surface as an internal failure (500), never as a
"wrong password" answer.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import hashlib

import bcrypt

DEFAULT_ROUNDS = 10


def _prehash(plain: str) -> bytes:
    return hashlib.sha256(plain.encode("utf-8")).hexdigest().encode("ascii")


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(_prehash(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    Raises ValueError if hashed is not a bcrypt hash.
    """
    return bcrypt.checkpw(_prehash(plain), hashed.encode("utf-8"))


class PasswordHasher:
    """Binds a cost factor so handlers can call hash()/verify() without config.

    Handlers receive an instance at construction time; tests swap in a mock
    to assert that no hashing happens on rejected requests.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        return hash_password(plain, self.rounds)

    def verify(self, plain: str, hashed: str) -> bool:
        return verify_password(plain, hashed)
