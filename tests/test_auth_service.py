"""Unit tests for auth/service.py -- authenticate, register_user, create_user_as."""

import pytest

from auth.errors import DuplicateEmailError, Forbidden
from auth.models import User
from auth.passwords import verify_password
from auth.service import authenticate, create_user_as, register_user
from auth.store import UserStore

ROUNDS = 4


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


class TestAuthenticate:
    def test_correct_password(self, store: UserStore) -> None:
        created = register_user(store, "Ada", "ada@example.com", "s3cret-pass", rounds=ROUNDS)
        user = authenticate(store, "ada@example.com", "s3cret-pass")
        assert user is not None
        assert user.id == created.id

    def test_wrong_password(self, store: UserStore) -> None:
        register_user(store, "Ada", "ada@example.com", "s3cret-pass", rounds=ROUNDS)
        assert authenticate(store, "ada@example.com", "nope") is None

    def test_unknown_email(self, store: UserStore) -> None:
        assert authenticate(store, "ghost@example.com", "s3cret-pass") is None

    def test_malformed_stored_hash_fails_closed(self, store: UserStore) -> None:
        store.create_user(User(name="Legacy", email="legacy@example.com", role="viewer", password_hash="plaintext"))
        assert authenticate(store, "legacy@example.com", "plaintext") is None


class TestRegister:
    def test_register_hashes_password_and_defaults_role(self, store: UserStore) -> None:
        user = register_user(store, "Ada", "ada@example.com", "s3cret-pass", rounds=ROUNDS)
        assert user.role == "developer"
        assert user.password_hash != "s3cret-pass"
        assert verify_password("s3cret-pass", user.password_hash)

    def test_duplicate_email(self, store: UserStore) -> None:
        register_user(store, "Ada", "ada@example.com", "s3cret-pass", rounds=ROUNDS)
        with pytest.raises(DuplicateEmailError):
            register_user(store, "Ada 2", "ada@example.com", "other-pass", rounds=ROUNDS)


class TestCreateUserAs:
    def test_project_manager_creates_developer(self, store: UserStore) -> None:
        user = create_user_as(store, "project_manager", "Dev", "dev@example.com", "s3cret-pass", "developer", ROUNDS)
        assert user.role == "developer"

    @pytest.mark.parametrize("target", ["admin", "project_manager"])
    def test_project_manager_cannot_create_peers_or_admins(self, store: UserStore, target: str) -> None:
        with pytest.raises(Forbidden, match="cannot create users with role"):
            create_user_as(store, "project_manager", "X", "x@example.com", "s3cret-pass", target, ROUNDS)
        assert store.get_by_email("x@example.com") is None

    def test_admin_creates_admin(self, store: UserStore) -> None:
        user = create_user_as(store, "admin", "Root", "root@example.com", "s3cret-pass", "admin", ROUNDS)
        assert user.role == "admin"
