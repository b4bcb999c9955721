"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Dataclasses own
domain shape; the store and the routes do the work.

User carries the password hash and never leaves the auth layer as-is.
PublicUser is the single projection that crosses the API boundary: every
response model in api/models.py is built from a PublicUser, so a new endpoint
cannot forget to strip the hash.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class User:
    """A SmartSprint account as stored in the credential store.

    email is unique and matched exactly (case-sensitive, as stored).
    role is one of the labels in auth.roles.Role.
    """

    name: str
    email: str
    role: str
    id: int | None = None
    password_hash: str | None = field(default=None, repr=False)
    bio: str | None = None
    department: str | None = None
    location: str | None = None
    phone: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_public(self) -> PublicUser:
        return PublicUser(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            bio=self.bio,
            department=self.department,
            location=self.location,
            phone=self.phone,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass(frozen=True)
class PublicUser:
    """User without credentials. The only user shape the API serializes."""

    id: int | None
    name: str
    email: str
    role: str
    bio: str | None = None
    department: str | None = None
    location: str | None = None
    phone: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """Per-request identity attached by the Auth Gate.

    Built from a verified token plus a freshly loaded User, so role reflects
    the store at request time rather than whatever was true at login.
    """

    user_id: int
    role: str
    user: PublicUser
