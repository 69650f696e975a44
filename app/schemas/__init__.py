"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser, LoginRequest, TokenResponse
from app.schemas.health import HealthResponse
from app.schemas.pagination import Pagination
from app.schemas.user import (
    DeleteDecision,
    NormalizedUser,
    RecipientAccepted,
    Role,
    StoredUser,
    UserAccepted,
    UserCandidate,
    UserDecision,
    UserPatch,
    UserPublic,
    UserRejected,
    UserRejection,
)

__all__ = [
    "CurrentUser",
    "DeleteDecision",
    "HealthResponse",
    "LoginRequest",
    "NormalizedUser",
    "Pagination",
    "RecipientAccepted",
    "Role",
    "StoredUser",
    "TokenResponse",
    "UserAccepted",
    "UserCandidate",
    "UserDecision",
    "UserPatch",
    "UserPublic",
    "UserRejected",
    "UserRejection",
]
