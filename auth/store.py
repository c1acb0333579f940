"""
auth/store.py -- Player credential store: interface + SQLAlchemy Core implementation.

Pattern: Repository + Data Mapper.
PlayerStore is the interface the handlers depend on (find_by_email,
exists_by_email, insert). SqlPlayerStore is the repository; _row_to_player is
the mapper. Handler code never touches SQL directly, and tests can substitute
an in-memory implementation.

Security:
  All queries use bound parameters. No f-strings in SQL.

  Emails are stored normalized (trimmed, lowercased) under a UNIQUE
  constraint. The duplicate-email pre-check in the Registration Handler is a
  fast path only; the constraint is what stops two concurrent registrations
  for one address from both succeeding. insert() turns the constraint
  violation into DuplicateEmailError.

Timeouts:
  Every store call is bounded by Settings.database_timeout_seconds: the busy
  timeout for SQLite, connect_timeout + statement_timeout for PostgreSQL. A
  timeout surfaces as a SQLAlchemy exception and the handler answers 500.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import Column, MetaData, Numeric, String, Table, Text, create_engine, event, func, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from auth.models import NewPlayer, PlayerRecord

logger = logging.getLogger("athletebase.store")

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class DuplicateEmailError(Exception):
    """The normalized email is already registered (UNIQUE constraint hit)."""


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class PlayerStore(Protocol):
    """What the auth handlers need from persistent storage."""

    def find_by_email(self, email: str) -> PlayerRecord | None:
        """Case-insensitive lookup. Returns None if no player has this email."""
        ...

    def exists_by_email(self, email: str) -> bool:
        """Case-insensitive existence check."""
        ...

    def insert(self, player: NewPlayer) -> str:
        """Persist a new player and return its id. Raises DuplicateEmailError."""
        ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_players = Table(
    "players",
    _metadata,
    Column("id", String(36), primary_key=True),  # uuid4, server-generated
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),  # normalized
    Column("password_hash", Text, nullable=False),
    Column("sex", String(10), nullable=False),
    Column("sport", String(100), nullable=False),
    Column("position", String(100), nullable=False),
    Column("gpa", Numeric(3, 2, asdecimal=False), nullable=False),
    Column("country", String(100), nullable=False),
    Column("state", String(100)),  # USA only
    Column("region", String(100)),  # outside USA only
    Column("scholarship_amount", Numeric(12, 2, asdecimal=False)),
    Column("test_scores", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a registration write.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize(email: str) -> str:
    return email.strip().lower()


def _engine_for(db_url: str, timeout_seconds: float, pool_size: int) -> Engine:
    connect_args: dict = {}
    kwargs: dict = {"pool_pre_ping": True}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = timeout_seconds
    else:
        kwargs["pool_size"] = pool_size
        if db_url.startswith("postgresql"):
            connect_args["connect_timeout"] = max(1, int(timeout_seconds))
            connect_args["options"] = f"-c statement_timeout={int(timeout_seconds * 1000)}"
    in_memory = ":memory:" in db_url or "mode=memory" in db_url
    if db_url.startswith("sqlite") and in_memory:
        # One shared connection keeps the in-memory database alive for every thread.
        kwargs["poolclass"] = StaticPool
    engine = create_engine(db_url, connect_args=connect_args, **kwargs)
    if db_url.startswith("sqlite") and not in_memory:
        event.listen(engine, "connect", _set_wal_mode)
    return engine


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SqlPlayerStore:
    """SQLAlchemy Core implementation of PlayerStore.

    Usage:
        store = SqlPlayerStore(settings.database_url)
        player_id = store.insert(NewPlayer(...))
        record = store.find_by_email("John.Doe@Example.com")
        store.close()
    """

    def __init__(self, db_url: str, timeout_seconds: float = 10.0, pool_size: int = 20) -> None:
        self.engine: Engine = _engine_for(db_url, timeout_seconds, pool_size)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> PlayerRecord | None:
        """Look up a player by email, ignoring case and surrounding whitespace.

        Stored emails are already normalized; lower() on the column also
        covers rows written by other tools without normalization.
        """
        with self.engine.connect() as conn:
            row = conn.execute(
                _players.select().where(func.lower(_players.c.email) == _normalize(email))
            ).fetchone()
        return _row_to_player(row) if row is not None else None

    def find_by_id(self, player_id: str) -> PlayerRecord | None:
        """Look up a player by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_players.select().where(_players.c.id == player_id)).fetchone()
        return _row_to_player(row) if row is not None else None

    def exists_by_email(self, email: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(
                text("SELECT EXISTS(SELECT 1 FROM players WHERE LOWER(email) = :email)"),
                {"email": _normalize(email)},
            ).scalar()
        return bool(result)

    def insert(self, player: NewPlayer) -> str:
        """Insert a new player and return its generated id.

        Raises DuplicateEmailError if the normalized email already exists --
        the loser of a concurrent registration race ends up here.
        """
        player_id = str(uuid.uuid4())
        now = _now_iso()
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _players.insert().values(
                        id=player_id,
                        first_name=player.first_name,
                        last_name=player.last_name,
                        email=_normalize(player.email),
                        password_hash=player.password_hash,
                        sex=player.sex,
                        sport=player.sport,
                        position=player.position,
                        gpa=player.gpa,
                        country=player.country,
                        state=player.state,
                        region=player.region,
                        scholarship_amount=player.scholarship_amount,
                        test_scores=player.test_scores,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError as exc:
            raise DuplicateEmailError("Email already registered") from exc
        logger.debug("Inserted player %s", player_id)
        return player_id

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Never raises."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("Credential store health check failed")
            return False

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_player(row) -> PlayerRecord:
    return PlayerRecord(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        password_hash=row.password_hash,
        sex=row.sex,
        sport=row.sport,
        position=row.position,
        gpa=float(row.gpa),
        country=row.country,
        state=row.state,
        region=row.region,
        scholarship_amount=float(row.scholarship_amount) if row.scholarship_amount is not None else None,
        test_scores=row.test_scores,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
