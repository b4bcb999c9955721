"""
API request and response models for SmartSprint REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Every user-shaped response is built through UserResponse.from_user(), which
goes through User.to_public(). There is no other path from a User to JSON.
"""

from typing import Annotated, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StringConstraints

from auth.models import PublicUser, User
from auth.roles import Role

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# Only identity fields are stripped. Passwords are hashed exactly as sent.
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Email = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255, pattern=EMAIL_PATTERN)]

_CLEARABLE_FIELDS = frozenset({"bio", "department", "location", "phone"})


# ---------------------------------------------------------------------------
# Auth request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    role is optional; the route falls back to the default role and refuses
    roles outside the configured self-registration set.
    """

    name: Name
    email: Email
    password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Optional[Role] = None


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    No email pattern here: a malformed email simply fails to authenticate,
    with the same 401 as any other bad login.
    """

    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LEN)


# ---------------------------------------------------------------------------
# User management request models
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /api/v1/users."""

    name: Name
    email: Email
    password: str = Field(min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Role = Role.developer


class UserUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{id}. All fields optional.

    Unknown keys (including "password") are ignored; passwords change only
    through /change-password.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    role: Optional[Role] = None
    bio: Optional[str] = Field(default=None, max_length=2000)
    department: Optional[str] = Field(default=None, max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)

    def changes(self) -> dict:
        """Return the fields the client sent.

        An explicit null clears a profile field. name, email and role cannot
        be cleared, so a null for them is dropped.
        """
        sent = self.model_dump(exclude_unset=True)
        return {k: v for k, v in sent.items() if v is not None or k in _CLEARABLE_FIELDS}


class PasswordChange(BaseModel):
    """Request body for POST /api/v1/users/{id}/change-password.

    Accepts both snake_case and the camelCase keys the web client sends.
    """

    current_password: str = Field(
        min_length=1,
        max_length=PASSWORD_MAX_LEN,
        validation_alias=AliasChoices("current_password", "currentPassword"),
    )
    new_password: str = Field(
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
        validation_alias=AliasChoices("new_password", "newPassword"),
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. Has no password field by construction."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    bio: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_public(cls, user: PublicUser) -> "UserResponse":
        return cls.model_validate(user)

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Build the response from a stored User via its public projection."""
        return cls.from_public(user.to_public())


class AuthResponse(BaseModel):
    """Response for POST /auth/register and POST /auth/login."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class MeResponse(BaseModel):
    """Response for GET /api/v1/auth/me and single-user reads."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    user: UserResponse


class UserListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    users: list[UserResponse]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    code: str
    message: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
