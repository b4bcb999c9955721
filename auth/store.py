"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  update_user() accepts only whitelisted column names.

Errors:
  A duplicate email surfaces as DuplicateEmailError. Any other SQLAlchemy
  failure is re-raised as StoreError so the API layer can answer 500 without
  knowing about SQLAlchemy.

Every method is a single statement on its own connection. Auth needs no
multi-statement transactions.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateEmailError, StoreError
from auth.models import User
from auth.roles import Role, is_known_role

logger = logging.getLogger("smartsprint.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default="developer"),
    Column("bio", Text),
    Column("department", String(255)),
    Column("location", String(255)),
    Column("phone", String(50)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

# Columns update_user() may touch. password_hash has its own method so a
# profile update can never overwrite it by accident.
_UPDATABLE_FIELDS = frozenset({"name", "email", "role", "bio", "department", "location", "phone"})


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///smartsprint.db")
        uid = store.create_user(User(name="Ada", email="ada@example.com", role="admin",
                                     password_hash=hash_password("secret")))
        user = store.get_by_email("ada@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        try:
            with self.engine.connect() as conn:
                yield conn
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.error("User store failure: %s", exc)
            raise StoreError(str(exc)) from exc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self._connect() as conn:
                conn.execute(select(1)).scalar()
        except StoreError:
            return False
        return True

    def has_users(self) -> bool:
        """Return True if at least one user record exists."""
        with self._connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (result or 0) > 0

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self._connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self._connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by id."""
        with self._connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises:
            ValueError:          role is not a known role, or no password hash.
            DuplicateEmailError: the email is already registered. Enforced by
                                 the UNIQUE constraint, so two concurrent
                                 registrations cannot both succeed.
        """
        if not is_known_role(user.role):
            raise ValueError(f"Invalid role: {user.role!r}")
        if not user.password_hash:
            raise ValueError("A password hash is required to create a user.")
        now = _now_iso()
        try:
            with self._connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        name=user.name,
                        email=user.email,
                        password_hash=user.password_hash,
                        role=Role(user.role).value,
                        bio=user.bio,
                        department=user.department,
                        location=user.location,
                        phone=user.phone,
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateEmailError() from exc
        return result.inserted_primary_key[0]

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable profile fields on an existing user.

        Accepted fields: name, email, role, bio, department, location, phone.
        Unknown field names raise ValueError rather than being silently
        ignored. updated_at is stamped on every successful call.

        Returns True if a row was updated, False if user_id was not found.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)!r}")
        if "role" in fields and not is_known_role(fields["role"]):
            raise ValueError(f"Invalid role: {fields['role']!r}")
        if "role" in fields:
            fields["role"] = Role(fields["role"]).value
        if not fields:
            return self.get_by_id(user_id) is not None
        try:
            with self._connect() as conn:
                result = conn.execute(
                    _users.update().where(_users.c.id == user_id).values(updated_at=_now_iso(), **fields)
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateEmailError() from exc
        return result.rowcount > 0

    def update_password(self, user_id: int, password_hash: str) -> bool:
        """Replace the stored hash. Returns False if user_id was not found."""
        with self._connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(password_hash=password_hash, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found.

        Outstanding tokens for the user stop working on their next request:
        the Auth Gate finds no user for the subject and answers 401.
        """
        with self._connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        bio=row.bio,
        department=row.department,
        location=row.location,
        phone=row.phone,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
