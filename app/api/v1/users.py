"""Account management endpoints: list, lookup, create, edit and delete users."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user, require_manager
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.security import create_access_token
from app.schemas.auth import CurrentUser
from app.schemas.user import (
    MANAGER_ROLES,
    OWNER_ROLE,
    ROLE_VALUES,
    AuthorItem,
    UserCandidate,
    UserDeleteResponse,
    UserEditResponse,
    UserNameItem,
    UserPatch,
    UserPublic,
    UserRejected,
    UserRejection,
    UsersListResponse,
)
from app.services import users
from app.services.users import UserPersistenceError

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_ITEMS_PER_PAGE = 100

# Rejections that describe a conflict with existing state rather than bad input.
_CONFLICT_REASONS: frozenset[UserRejection] = frozenset(
    {
        UserRejection.ALREADY_EXISTS,
        UserRejection.CANNOT_CHANGE_OWNER,
        UserRejection.CANNOT_DELETE_OWNER,
        UserRejection.UNABLE_TO_ASSIGN_POSTS,
    }
)
_NOT_FOUND_REASONS: frozenset[UserRejection] = frozenset(
    {UserRejection.NOT_FOUND, UserRejection.INVALID_USER}
)


def rejection_status(reason: UserRejection) -> int:
    """HTTP status for a lifecycle rejection."""
    if reason in _NOT_FOUND_REASONS:
        return status.HTTP_404_NOT_FOUND
    if reason in _CONFLICT_REASONS:
        return status.HTTP_409_CONFLICT
    return status.HTTP_422_UNPROCESSABLE_ENTITY


def _raise_rejection(rejected: UserRejected) -> None:
    raise HTTPException(
        status_code=rejection_status(rejected.reason),
        detail={"reason": rejected.reason.value, "message": rejected.message},
    )


def _persistence_failed(e: UserPersistenceError) -> HTTPException:
    logger.error("User persistence error: %s", e.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Unable to save user changes.",
    )


@router.get("", response_model=UsersListResponse)
def list_users(
    _manager: Annotated[CurrentUser, Depends(require_manager)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    query: Annotated[str | None, Query(max_length=255)] = None,
    role: Annotated[list[str] | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    items_per_page: Annotated[int | None, Query(ge=1, le=MAX_ITEMS_PER_PAGE)] = None,
) -> UsersListResponse:
    """Search and page through accounts (owner/admin only). role may be repeated."""
    if role and not set(role) <= ROLE_VALUES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"role must be one of {sorted(ROLE_VALUES)}",
        )
    found, pagination = users.get_many(
        db,
        query=query,
        role=role,
        page=page,
        items_per_page=items_per_page or settings.USERS_PER_PAGE,
    )
    return UsersListResponse(
        users=[UserPublic.model_validate(u, from_attributes=True) for u in found],
        pagination=pagination,
    )


@router.get("/names", response_model=list[UserNameItem])
def list_user_names(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> list[UserNameItem]:
    """Slug and name of every account, ordered by name."""
    return users.get_names(db)


@router.get("/authors", response_model=list[AuthorItem])
def list_authors(
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    query: Annotated[str | None, Query(max_length=255)] = None,
) -> list[AuthorItem]:
    """Every account with its post count."""
    return users.get_authors(db, query=query)


@router.get("/{slug}", response_model=UserPublic)
def get_user(
    slug: str,
    _user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserPublic:
    found = users.get_one(db, slug)
    if found is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserPublic.model_validate(found, from_attributes=True)


@router.post("", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCandidate,
    _manager: Annotated[CurrentUser, Depends(require_manager)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserPublic:
    """Create an account (owner/admin only)."""
    try:
        decision = users.create(db, body, settings)
    except UserPersistenceError as e:
        raise _persistence_failed(e) from e
    if isinstance(decision, UserRejected):
        _raise_rejection(decision)
    created = users.get_one(db, decision.record.slug)
    return UserPublic.model_validate(created, from_attributes=True)


@router.patch("/{slug}", response_model=UserEditResponse)
def edit_user(
    slug: str,
    body: UserPatch,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserEditResponse:
    """
    Update an account. Anyone may edit their own profile; owner/admin may edit others.
    Only the owner may edit the owner account, and only owner/admin may change roles.
    When the caller renames their own slug, a fresh access token is returned.
    """
    is_self = current_user.slug == slug
    is_manager = current_user.role in MANAGER_ROLES
    if not (is_self or is_manager):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to edit this user")
    if not is_manager and body.role is not None and body.role != current_user.role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to change roles")
    target = users.get_one(db, slug)
    if target is not None and target.role == OWNER_ROLE and current_user.role != OWNER_ROLE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the owner may edit the owner account")

    try:
        decision = users.edit(db, slug, body, settings)
    except UserPersistenceError as e:
        raise _persistence_failed(e) from e
    if isinstance(decision, UserRejected):
        _raise_rejection(decision)

    record = decision.record
    updated = users.get_one(db, record.slug)
    token = None
    if is_self and record.slug != slug:
        token = create_access_token(sub=record.slug, role=record.role)
    return UserEditResponse(
        user=UserPublic.model_validate(updated, from_attributes=True),
        access_token=token,
    )


@router.delete("/{slug}", response_model=UserDeleteResponse)
def delete_user(
    slug: str,
    _manager: Annotated[CurrentUser, Depends(require_manager)],
    db: Annotated[Session, Depends(get_db)],
    recipient: Annotated[str | None, Query(max_length=191)] = None,
) -> UserDeleteResponse:
    """Delete an account (owner/admin only); its posts go to the recipient, or the owner by default."""
    try:
        decision, moved = users.delete(db, slug, recipient_slug=recipient)
    except UserPersistenceError as e:
        raise _persistence_failed(e) from e
    if isinstance(decision, UserRejected):
        _raise_rejection(decision)
    return UserDeleteResponse(
        deleted=True,
        recipient=decision.recipient.slug,
        posts_reassigned=moved,
    )
