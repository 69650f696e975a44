"""Pydantic schemas for blog accounts: candidates, normalized records, lifecycle decisions, API bodies."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.pagination import Pagination

Role = Literal["owner", "admin", "editor", "author"]

OWNER_ROLE = "owner"
DEFAULT_ROLE = "author"
ROLE_VALUES: frozenset[str] = frozenset({"owner", "admin", "editor", "author"})

# Roles allowed to manage other accounts.
MANAGER_ROLES: frozenset[str] = frozenset({"owner", "admin"})

# Profile fields that are never NULL: missing values are stored as "".
OPTIONAL_FIELDS: tuple[str, ...] = (
    "reset_token",
    "bio",
    "cover",
    "avatar",
    "twitter",
    "location",
    "website",
)


class UserRejection(str, Enum):
    """Why a create, edit or delete request was refused."""

    ALREADY_EXISTS = "already_exists"
    CANNOT_CHANGE_OWNER = "cannot_change_owner"
    CANNOT_DELETE_OWNER = "cannot_delete_owner"
    INVALID_EMAIL = "invalid_email"
    INVALID_NAME = "invalid_name"
    INVALID_PASSWORD = "invalid_password"
    INVALID_SLUG = "invalid_slug"
    INVALID_USER = "invalid_user"
    NOT_FOUND = "not_found"
    PASSWORD_TOO_SHORT = "password_too_short"
    UNABLE_TO_ASSIGN_POSTS = "unable_to_assign_posts"


class UserCandidate(BaseModel):
    """Account fields as submitted for creation. Nothing is trusted or normalized yet."""

    model_config = ConfigDict(extra="ignore")

    slug: str | None = Field(default=None, description="Requested slug; normalized before use.")
    name: str | None = Field(default=None, description="Display name.")
    email: str | None = Field(default=None, description="Email address.")
    password: str | None = Field(default=None, description="Plain-text password; hashed before storage.")
    role: str | None = Field(default=None, description="owner, admin, editor or author.")
    bio: str | None = None
    cover: str | None = None
    avatar: str | None = None
    twitter: str | None = None
    location: str | None = None
    website: str | None = None


class UserPatch(UserCandidate):
    """Fields to change on an existing account. Omitted or null fields keep their stored value."""

    @field_validator("password", mode="before")
    @classmethod
    def drop_non_string_password(cls, v: object) -> str | None:
        # Anything but a string keeps the stored hash.
        return v if isinstance(v, str) else None


class StoredUser(BaseModel):
    """Account as persisted (password holds the hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    email: str
    password: str
    role: str
    reset_token: str = ""
    bio: str = ""
    cover: str = ""
    avatar: str = ""
    twitter: str = ""
    location: str = ""
    website: str = ""
    created: datetime | None = None


class NormalizedUser(BaseModel):
    """Account that passed validation: optionals defaulted, role finalized, password hashed."""

    slug: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., description="Password hash.")
    role: Role
    reset_token: str = ""
    bio: str = ""
    cover: str = ""
    avatar: str = ""
    twitter: str = ""
    location: str = ""
    website: str = ""


class UserAccepted(BaseModel):
    """Create or edit was accepted; record is ready for persistence."""

    outcome: Literal["accepted"] = "accepted"
    record: NormalizedUser


class UserRejected(BaseModel):
    """Create, edit or delete was refused."""

    outcome: Literal["rejected"] = "rejected"
    reason: UserRejection
    message: str


class RecipientAccepted(BaseModel):
    """Delete was accepted; recipient receives the deleted account's posts."""

    outcome: Literal["accepted"] = "accepted"
    recipient: StoredUser


UserDecision = UserAccepted | UserRejected
DeleteDecision = RecipientAccepted | UserRejected


class UserPublic(BaseModel):
    """Account as returned by the API (never includes the password hash or reset token)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    slug: str
    name: str
    email: str
    role: str
    created: datetime | None = None
    bio: str = ""
    cover: str = ""
    avatar: str = ""
    twitter: str = ""
    location: str = ""
    website: str = ""


class UsersListResponse(BaseModel):
    """Response for GET /users."""

    users: list[UserPublic]
    pagination: Pagination


class UserNameItem(BaseModel):
    """Slug and display name, e.g. for author pickers."""

    slug: str
    name: str


class AuthorItem(BaseModel):
    """Author with the number of posts attributed to them."""

    slug: str
    name: str
    avatar: str = ""
    post_count: int = Field(default=0, ge=0)


class UserEditResponse(BaseModel):
    """Response for PATCH /users/{slug}. access_token is set when the caller edited their own slug."""

    user: UserPublic
    access_token: str | None = None


class UserDeleteResponse(BaseModel):
    """Response for DELETE /users/{slug}."""

    deleted: bool
    recipient: str
    posts_reassigned: int = Field(default=0, ge=0)
