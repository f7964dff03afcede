"""
auth/store.py -- Credential store: durable SQL table with volatile failover.

Pattern: Repository + Data Mapper. CredentialStore is the repository
interface; DurableStore and VolatileStore are the two implementations;
FailoverStore composes them. _row_to_user is the mapper. Flow code never
touches SQL directly.

Failover contract:
  Every FailoverStore operation tries the durable store first. An AuthError
  tagged ErrorKind.INFRASTRUCTURE (unreachable database, timeout, broken
  query) makes it retry the same operation on the volatile store. Business
  errors (ConflictError) are returned to the caller untouched.

  The two stores are never merged or cross-checked. A user registered while
  the database was down lives only in the volatile store and is invisible
  once the database answers again, and vice versa. That gap is accepted;
  tests/test_store.py pins it down explicitly.

Concurrency:
  DurableStore shares one SQLAlchemy engine. For server databases the pool
  holds 10 connections with no overflow and no checkout timeout, so a burst
  of requests queues for a connection instead of failing. UNIQUE constraints
  on username and email close the check-then-insert race natively.

  VolatileStore is process-wide shared state. A single lock covers each
  read-check-write, so two racing inserts of the same username/email admit
  exactly one winner.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, create_engine, or_, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import AuthError, ConflictError, ErrorKind, InfrastructureError
from auth.models import User

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("authgate.store")

DEFAULT_POOL_SIZE = 10

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("phone", String(50), nullable=False),
    Column("password_hash", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _normalise_url(db_url: str) -> str:
    """Pin bare mysql:// URLs to the PyMySQL driver."""
    if db_url.startswith("mysql://"):
        return "mysql+pymysql://" + db_url[len("mysql://") :]
    return db_url


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    """Map SQLAlchemy exceptions onto the auth error taxonomy.

    IntegrityError is the database rejecting a duplicate username/email --
    a business outcome. Everything else SQLAlchemy raises means the store
    could not do its job.
    """
    try:
        yield
    except IntegrityError as exc:
        raise ConflictError() from exc
    except SQLAlchemyError as exc:
        raise InfrastructureError(f"{operation}: {exc.__class__.__name__}") from exc


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class CredentialStore(ABC):
    """Where user records live. Implementations own their records exclusively."""

    @abstractmethod
    def find_by_username(self, username: str) -> User | None:
        """Return the user with this exact username, or None."""

    @abstractmethod
    def find_by_username_or_email(self, username: str, email: str) -> User | None:
        """Return any user holding this username or this email, or None."""

    @abstractmethod
    def insert(self, username: str, email: str, phone: str, password_hash: str) -> User:
        """Create a user and return it with id and created_at filled in.

        Raises ConflictError if the username or email is already taken in
        this store.
        """

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Durable store (SQLAlchemy Core)
# ---------------------------------------------------------------------------


class DurableStore(CredentialStore):
    """Relational users table.

    The engine connects lazily, so constructing a DurableStore never fails
    because the database is down. The table is created on the first
    successful contact and every failure surfaces as InfrastructureError.

    Usage:
        store = DurableStore("sqlite:///authgate.db")
        store.initialize()
        user = store.insert("alice", "a@x.com", "555", hash_password("p1"))
        store.close()
    """

    def __init__(self, db_url: str, pool_size: int = DEFAULT_POOL_SIZE) -> None:
        db_url = _normalise_url(db_url)
        connect_args: dict = {}
        engine_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        else:
            # Bounded pool, unbounded wait queue: checkout blocks until a
            # connection is returned rather than raising TimeoutError.
            engine_args.update(pool_size=pool_size, max_overflow=0, pool_timeout=None, pool_pre_ping=True)
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_args)
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    @property
    def display_url(self) -> str:
        return self.engine.url.render_as_string(hide_password=True)

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if not self._schema_ready:
                _metadata.create_all(self.engine)
                self._schema_ready = True

    def initialize(self) -> bool:
        """Create the users table if needed. Returns False if the database is unreachable.

        A False result is not fatal: every later operation retries the
        database and FailoverStore covers for it meanwhile.
        """
        try:
            self._ensure_schema()
        except SQLAlchemyError as exc:
            logger.warning(
                "Durable store %s unreachable at startup (%s); running on the volatile store until it answers",
                self.display_url,
                exc.__class__.__name__,
            )
            return False
        logger.info("Durable store %s ready", self.display_url)
        return True

    def ping(self) -> bool:
        """Return True if a trivial query succeeds."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def find_by_username(self, username: str) -> User | None:
        with _translate_errors("find_by_username"):
            self._ensure_schema()
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_username_or_email(self, username: str, email: str) -> User | None:
        with _translate_errors("find_by_username_or_email"):
            self._ensure_schema()
            with self.engine.connect() as conn:
                row = conn.execute(
                    _users.select().where(or_(_users.c.username == username, _users.c.email == email)).limit(1)
                ).fetchone()
        return _row_to_user(row) if row is not None else None

    def insert(self, username: str, email: str, phone: str, password_hash: str) -> User:
        """Insert a new user. The UNIQUE constraints turn a lost race into ConflictError."""
        created_at = _now()
        with _translate_errors("insert"):
            self._ensure_schema()
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=username,
                        email=email,
                        phone=phone,
                        password_hash=password_hash,
                        created_at=created_at,
                    )
                )
                conn.commit()
                user_id = result.inserted_primary_key[0]
        return User(
            id=user_id,
            username=username,
            email=email,
            phone=phone,
            password_hash=password_hash,
            created_at=created_at,
        )

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Volatile store (in-process)
# ---------------------------------------------------------------------------


class VolatileStore(CredentialStore):
    """In-memory users keyed by username. Lives and dies with the process.

    Ids come from a private counter starting at 1, independent of any
    database sequence.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._by_email: dict[str, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def find_by_username(self, username: str) -> User | None:
        with self._lock:
            return self._users.get(username)

    def find_by_username_or_email(self, username: str, email: str) -> User | None:
        with self._lock:
            return self._users.get(username) or self._by_email.get(email)

    def insert(self, username: str, email: str, phone: str, password_hash: str) -> User:
        with self._lock:
            if username in self._users or email in self._by_email:
                raise ConflictError()
            user = User(
                id=self._next_id,
                username=username,
                email=email,
                phone=phone,
                password_hash=password_hash,
                created_at=_now(),
            )
            self._next_id += 1
            self._users[username] = user
            self._by_email[email] = user
        return user


# ---------------------------------------------------------------------------
# Failover composition
# ---------------------------------------------------------------------------


class FailoverStore(CredentialStore):
    """Durable store first, volatile store on infrastructure failure.

    durable=None means no database is configured; every call goes to the
    volatile store for the life of the process.
    """

    def __init__(self, durable: CredentialStore | None, volatile: VolatileStore | None = None) -> None:
        self.durable = durable
        self.volatile = volatile if volatile is not None else VolatileStore()

    def _call(self, operation: str, *args):
        if self.durable is not None:
            try:
                return getattr(self.durable, operation)(*args)
            except AuthError as exc:
                if exc.kind is not ErrorKind.INFRASTRUCTURE:
                    raise
                logger.warning("Durable store failed during %s (%s); using volatile store", operation, exc.message)
        return getattr(self.volatile, operation)(*args)

    def find_by_username(self, username: str) -> User | None:
        return self._call("find_by_username", username)

    def find_by_username_or_email(self, username: str, email: str) -> User | None:
        return self._call("find_by_username_or_email", username, email)

    def insert(self, username: str, email: str, phone: str, password_hash: str) -> User:
        return self._call("insert", username, email, phone, password_hash)

    def durable_status(self) -> str:
        """Report the durable store as "ok", "unavailable" or "not_configured"."""
        if self.durable is None:
            return "not_configured"
        ping = getattr(self.durable, "ping", None)
        if ping is None or ping():
            return "ok"
        return "unavailable"

    def close(self) -> None:
        if self.durable is not None:
            self.durable.close()


def build_credential_store(settings: Settings) -> FailoverStore:
    """Assemble the FailoverStore described by the configuration.

    An empty DATABASE_URL, or one SQLAlchemy cannot build an engine for
    (unknown dialect, driver not installed), leaves the process on the
    volatile store permanently.
    """
    durable: DurableStore | None = None
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set; users are kept in memory and lost on restart")
    else:
        try:
            durable = DurableStore(settings.database_url, pool_size=settings.db_pool_size)
        except (SQLAlchemyError, ImportError) as exc:
            logger.error("Cannot build durable store engine (%s); using volatile store only", exc)
        else:
            durable.initialize()
    return FailoverStore(durable)


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    # SQLite hands DateTime columns back naive even with timezone=True.
    created_at = row.created_at
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        phone=row.phone,
        password_hash=row.password_hash,
        created_at=created_at,
    )
