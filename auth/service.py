"""
auth/service.py -- Login and account-creation use cases.

These functions sit between the routes and the store so the security rules
live in one place:
  - authenticate() always pays the bcrypt cost, whether or not the email
    exists, so response time does not reveal which accounts exist.
  - register_user() and create_user_as() are the only paths that hash a new
    password and insert a row. create_user_as() applies the role hierarchy.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from auth.errors import Forbidden, MalformedHashError, StoreError
from auth.models import User
from auth.passwords import DEFAULT_ROUNDS, DUMMY_HASH, hash_password, verify_password
from auth.roles import Role, can_create
from auth.store import UserStore

logger = logging.getLogger("smartsprint.auth")


def authenticate(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    - Unknown email: bcrypt runs against DUMMY_HASH (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, None on any failure. The caller must answer
    every None with the same message.

    A stored hash that is not bcrypt at all is logged and treated as a failed
    login; the client sees the ordinary 401.
    """
    user = store.get_by_email(email)
    if user is None or not user.password_hash:
        verify_password(password, DUMMY_HASH)
        return None
    try:
        matched = verify_password(password, user.password_hash)
    except MalformedHashError:
        logger.error("Stored password hash for user %s is malformed", user.id)
        return None
    return user if matched else None


def register_user(
    store: UserStore,
    name: str,
    email: str,
    password: str,
    role: Role | str = Role.developer,
    rounds: int = DEFAULT_ROUNDS,
) -> User:
    """Create an account and return it as stored (with id and timestamps).

    No role check happens here -- callers decide who may register with which
    role. Raises DuplicateEmailError if the email is taken.
    """
    user_id = store.create_user(
        User(
            name=name,
            email=email,
            role=Role(role).value,
            password_hash=hash_password(password, rounds=rounds),
        )
    )
    created = store.get_by_id(user_id)
    if created is None:
        raise StoreError(f"User {user_id} not found after insert.")
    logger.info("User %s registered with role %s", user_id, created.role)
    return created


def create_user_as(
    store: UserStore,
    actor_role: Role | str,
    name: str,
    email: str,
    password: str,
    role: Role | str = Role.developer,
    rounds: int = DEFAULT_ROUNDS,
) -> User:
    """Create an account on behalf of an authenticated actor.

    Raises Forbidden when the role hierarchy does not let actor_role create
    role. The check runs before hashing, so a refused request costs no bcrypt
    work.
    """
    if not can_create(actor_role, role):
        raise Forbidden(f"Users with role '{_label(actor_role)}' cannot create users with role '{_label(role)}'.")
    return register_user(store, name, email, password, role=role, rounds=rounds)


def _label(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else str(role)
