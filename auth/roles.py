"""
auth/roles.py -- Static role hierarchy and the user-creation rule.

Four roles, ranked by privilege. The table is fixed in code; a user's role is
stored as a plain string column and mapped back through this module.

Unknown role strings rank as the lowest role (fail-closed): a corrupted or
legacy value never grants more than viewer-level privilege.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    admin = "admin"
    project_manager = "project_manager"
    developer = "developer"
    viewer = "viewer"


ROLE_RANK: dict[Role, int] = {
    Role.viewer: 0,
    Role.developer: 1,
    Role.project_manager: 2,
    Role.admin: 3,
}

TOP_ROLE = Role.admin
DEFAULT_ROLE = Role.developer

_LOWEST_RANK = min(ROLE_RANK.values())


def is_known_role(value: object) -> bool:
    """Return True if value is one of the four role labels."""
    try:
        Role(value)
    except ValueError:
        return False
    return True


def rank(role: Role | str) -> int:
    """Return the integer rank of a role. Unknown roles get the lowest rank."""
    if not is_known_role(role):
        return _LOWEST_RANK
    return ROLE_RANK[Role(role)]


def can_create(actor_role: Role | str, target_role: Role | str) -> bool:
    """Decide whether a user holding actor_role may create a user with target_role.

    Strictly-greater rank is required, with one asymmetric exception: the top
    role may create its own tier, and nobody else may ever create it. The
    explicit top-role branch keeps that guarantee even if the rank table is
    later edited so that two roles tie.
    """
    if not is_known_role(target_role):
        return False
    if Role(target_role) is TOP_ROLE:
        return is_known_role(actor_role) and Role(actor_role) is TOP_ROLE
    return rank(actor_role) > rank(target_role)
