"""Unit tests for auth/store.py and auth/models.py -- the credential store.

Covers:
- create/get round trip, id assignment, timestamps
- email uniqueness and case-sensitive lookup
- role validation on create and update
- update_user field whitelist, update_password, delete_user
- PublicUser projection never carries the password hash
- SQLAlchemy failures surface as StoreError
"""

from dataclasses import fields

import pytest
from sqlalchemy import text

from auth.errors import DuplicateEmailError, StoreError
from auth.models import PublicUser, User
from auth.store import UserStore


def _user(email: str = "ada@example.com", role: str = "developer", **extra) -> User:
    return User(name="Ada Lovelace", email=email, role=role, password_hash="$2b$04$" + "a" * 53, **extra)


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


class TestCreateAndRead:
    def test_create_assigns_id_and_timestamps(self, store: UserStore) -> None:
        uid = store.create_user(_user(department="R&D"))
        user = store.get_by_id(uid)
        assert user is not None
        assert user.id == uid
        assert user.email == "ada@example.com"
        assert user.role == "developer"
        assert user.department == "R&D"
        assert user.created_at and user.updated_at

    def test_has_users(self, store: UserStore) -> None:
        assert store.has_users() is False
        store.create_user(_user())
        assert store.has_users() is True

    def test_get_missing_returns_none(self, store: UserStore) -> None:
        assert store.get_by_id(999) is None
        assert store.get_by_email("nobody@example.com") is None

    def test_email_lookup_is_case_sensitive(self, store: UserStore) -> None:
        store.create_user(_user("Ada@Example.com"))
        assert store.get_by_email("Ada@Example.com") is not None
        assert store.get_by_email("ada@example.com") is None

    def test_duplicate_email_raises(self, store: UserStore) -> None:
        store.create_user(_user())
        with pytest.raises(DuplicateEmailError):
            store.create_user(_user())

    def test_unknown_role_is_rejected(self, store: UserStore) -> None:
        with pytest.raises(ValueError):
            store.create_user(_user(role="superuser"))

    def test_password_hash_is_required(self, store: UserStore) -> None:
        with pytest.raises(ValueError):
            store.create_user(User(name="Ada", email="ada@example.com", role="viewer"))

    def test_list_users_in_id_order(self, store: UserStore) -> None:
        first = store.create_user(_user("a@example.com"))
        second = store.create_user(_user("b@example.com"))
        assert [u.id for u in store.list_users()] == [first, second]


class TestWrites:
    def test_update_profile_fields(self, store: UserStore) -> None:
        uid = store.create_user(_user())
        assert store.update_user(uid, name="Countess", location="London", role="viewer") is True
        user = store.get_by_id(uid)
        assert (user.name, user.location, user.role) == ("Countess", "London", "viewer")

    def test_update_rejects_unknown_fields(self, store: UserStore) -> None:
        uid = store.create_user(_user())
        with pytest.raises(ValueError):
            store.update_user(uid, password_hash="sneaky")

    def test_update_rejects_unknown_role(self, store: UserStore) -> None:
        uid = store.create_user(_user())
        with pytest.raises(ValueError):
            store.update_user(uid, role="root")

    def test_update_to_taken_email_raises(self, store: UserStore) -> None:
        store.create_user(_user("a@example.com"))
        uid = store.create_user(_user("b@example.com"))
        with pytest.raises(DuplicateEmailError):
            store.update_user(uid, email="a@example.com")

    def test_update_missing_user_returns_false(self, store: UserStore) -> None:
        assert store.update_user(999, name="Ghost") is False

    def test_update_password(self, store: UserStore) -> None:
        uid = store.create_user(_user())
        new_hash = "$2b$04$" + "b" * 53
        assert store.update_password(uid, new_hash) is True
        assert store.get_by_id(uid).password_hash == new_hash
        assert store.update_password(999, new_hash) is False

    def test_delete(self, store: UserStore) -> None:
        uid = store.create_user(_user())
        assert store.delete_user(uid) is True
        assert store.get_by_id(uid) is None
        assert store.delete_user(uid) is False


class TestPublicProjection:
    def test_public_user_has_no_password_field(self, store: UserStore) -> None:
        uid = store.create_user(_user())
        public = store.get_by_id(uid).to_public()
        assert isinstance(public, PublicUser)
        assert "password_hash" not in {f.name for f in fields(public)}
        assert public.email == "ada@example.com"

    def test_repr_hides_password_hash(self) -> None:
        assert "$2b$" not in repr(_user())


class TestFailures:
    def test_sql_failure_becomes_store_error(self, store: UserStore) -> None:
        with store.engine.connect() as conn:
            conn.execute(text("DROP TABLE users"))
            conn.commit()
        with pytest.raises(StoreError):
            store.get_by_id(1)

    def test_ping(self, store: UserStore) -> None:
        assert store.ping() is True
