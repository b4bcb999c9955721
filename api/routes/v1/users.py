"""
api/routes/v1/users.py -- User administration REST endpoints.

Routes:
  GET    /api/v1/users                       -- list users (admin, project_manager)
  GET    /api/v1/users/{id}                  -- read one user (self, admin, project_manager)
  POST   /api/v1/users                       -- create user (admin, project_manager + hierarchy)
  PUT    /api/v1/users/{id}                  -- update profile (self or admin; role: admin only)
  POST   /api/v1/users/{id}/change-password  -- change own password (self only)
  DELETE /api/v1/users/{id}                  -- delete user (admin; never self)

Security:
  The role guard (require_role) runs first where a route has a fixed role
  set. Routes that also let a user act on their own record call
  ensure_self_or_role() on top of the gate instead.
  POST /users additionally applies auth.roles.can_create(): a project
  manager may create developers and viewers, only an admin may create admins.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Request

from api.models import (
    MeResponse,
    MessageResponse,
    PasswordChange,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from auth.dependencies import ensure_self_or_role, get_current_identity, require_role
from auth.errors import Forbidden, MalformedHashError
from auth.models import Identity, User
from auth.passwords import hash_password, verify_password
from auth.roles import Role
from auth.service import create_user_as
from auth.store import UserStore
from core.config import Settings

logger = logging.getLogger("smartsprint.api")

# Auth policy:
# - GET    /users:                      admin, project_manager
# - GET    /users/{id}:                 self, admin, project_manager
# - POST   /users:                      admin, project_manager (+ can_create)
# - PUT    /users/{id}:                 self, admin (role changes: admin only)
# - POST   /users/{id}/change-password: self only
# - DELETE /users/{id}:                 admin (not self)
router = APIRouter()

_USER_MANAGERS = (Role.admin, Role.project_manager)

# SQLite INTEGER primary keys are signed 64-bit.
UserId = Annotated[int, Path(ge=1, le=2**63 - 1)]


def _get_user_or_404(user_store: UserStore, user_id: int) -> User:
    user = user_store.get_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    return user


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
def list_users(
    request: Request,
    identity: Identity = Depends(require_role(_USER_MANAGERS)),
) -> UserListResponse:
    """List all user accounts."""
    user_store: UserStore = request.app.state.user_store
    return UserListResponse(users=[UserResponse.from_user(u) for u in user_store.list_users()])


@router.get("/users/{user_id}", response_model=MeResponse)
def get_user(
    request: Request,
    user_id: UserId,
    identity: Identity = Depends(get_current_identity),
) -> MeResponse:
    """Return one user. Users may always read their own record."""
    ensure_self_or_role(identity, user_id, _USER_MANAGERS)
    user_store: UserStore = request.app.state.user_store
    return MeResponse(user=UserResponse.from_user(_get_user_or_404(user_store, user_id)))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


@router.post("/users", response_model=MeResponse, status_code=201)
def create_user(
    request: Request,
    body: UserCreate,
    identity: Identity = Depends(require_role(_USER_MANAGERS)),
) -> MeResponse:
    """Create an account on behalf of the caller, subject to the role hierarchy.

    Forbidden (403) if the caller's role may not create body.role.
    Duplicate email -> 400.
    """
    settings: Settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store
    created = create_user_as(
        user_store,
        actor_role=identity.role,
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role,
        rounds=settings.bcrypt_rounds,
    )
    logger.info("User %s created user %s (%s)", identity.user_id, created.id, created.role)
    return MeResponse(user=UserResponse.from_user(created))


@router.put("/users/{user_id}", response_model=MeResponse)
def update_user(
    request: Request,
    user_id: UserId,
    body: UserUpdate,
    identity: Identity = Depends(get_current_identity),
) -> MeResponse:
    """Update profile fields. Users may edit themselves; admins may edit anyone.

    A role change from a non-admin is dropped, not rejected, so a user saving
    their own profile form never trips over the role field it echoes back.
    """
    ensure_self_or_role(identity, user_id, [Role.admin])
    user_store: UserStore = request.app.state.user_store
    _get_user_or_404(user_store, user_id)

    updates = body.changes()
    if "role" in updates:
        if identity.role != Role.admin.value:
            updates.pop("role")
        else:
            updates["role"] = Role(updates["role"]).value

    if not updates:
        raise HTTPException(
            status_code=400,
            detail={"code": "no_changes", "message": "No fields to update."},
        )

    user_store.update_user(user_id, **updates)
    return MeResponse(user=UserResponse.from_user(_get_user_or_404(user_store, user_id)))


@router.post("/users/{user_id}/change-password", response_model=MessageResponse)
def change_password(
    request: Request,
    user_id: UserId,
    body: PasswordChange,
    identity: Identity = Depends(get_current_identity),
) -> MessageResponse:
    """Change the caller's own password after re-verifying the current one."""
    if identity.user_id != user_id:
        raise Forbidden("Not authorized to change this user's password.")

    settings: Settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store
    user = _get_user_or_404(user_store, user_id)

    try:
        matched = verify_password(body.current_password, user.password_hash or "")
    except MalformedHashError:
        logger.error("Stored password hash for user %s is malformed", user_id)
        matched = False
    if not matched:
        raise HTTPException(
            status_code=400,
            detail={"code": "wrong_password", "message": "Current password is incorrect."},
        )

    user_store.update_password(user_id, hash_password(body.new_password, rounds=settings.bcrypt_rounds))
    logger.info("User %s changed their password", user_id)
    return MessageResponse(message="Password updated successfully.")


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    request: Request,
    user_id: UserId,
    identity: Identity = Depends(require_role([Role.admin])),
) -> MessageResponse:
    """Delete an account. Admins cannot delete themselves."""
    user_store: UserStore = request.app.state.user_store
    _get_user_or_404(user_store, user_id)
    if user_id == identity.user_id:
        raise HTTPException(
            status_code=400,
            detail={"code": "self_delete", "message": "Cannot delete your own account."},
        )
    user_store.delete_user(user_id)
    logger.info("User %s deleted user %s", identity.user_id, user_id)
    return MessageResponse(message="User deleted successfully.")
