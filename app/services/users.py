"""Account persistence: listings, lookups, and create/edit/delete around the lifecycle validator.

Every function takes the SQLAlchemy Session explicitly. Validation outcomes come back as
UserDecision / DeleteDecision values; storage failures raise UserPersistenceError after the
session has been rolled back.
"""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.security import verify_password as check_password
from app.models import Post, User
from app.schemas.pagination import Pagination
from app.schemas.user import (
    OWNER_ROLE,
    AuthorItem,
    NormalizedUser,
    RecipientAccepted,
    StoredUser,
    UserAccepted,
    UserCandidate,
    UserNameItem,
    UserPatch,
    UserRejected,
)
from app.services.pagination import page_offset, paginate
from app.services.posts import reassign_posts
from app.services.slugs import is_protected_slug
from app.services.user_lifecycle import (
    PasswordHasher,
    validate_for_create,
    validate_for_delete,
    validate_for_edit,
)

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Columns searched by the free-text query in get_many.
SEARCH_COLUMNS = (User.slug, User.name, User.email, User.bio, User.location)


class UserPersistenceError(Exception):
    """Raised when the database rejects or fails a write that already passed validation."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


def _to_stored(user: User | None) -> StoredUser | None:
    return StoredUser.model_validate(user) if user is not None else None


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _filters(query: str | None, role: str | Sequence[str] | None) -> list:
    clauses = []
    if query:
        pattern = _like(query)
        clauses.append(or_(*(col.ilike(pattern, escape="\\") for col in SEARCH_COLUMNS)))
    if role:
        roles = [role] if isinstance(role, str) else list(role)
        clauses.append(User.role.in_(roles))
    return clauses


def count(db: Session, query: str | None = None, role: str | Sequence[str] | None = None) -> int:
    """Number of accounts matching the same filters as get_many."""
    return int(
        db.query(func.count(User.id)).filter(*_filters(query, role)).scalar() or 0
    )


def get_many(
    db: Session,
    query: str | None = None,
    role: str | Sequence[str] | None = None,
    page: int = 1,
    items_per_page: int = 10,
) -> tuple[list[StoredUser], Pagination]:
    """
    Search accounts by slug, name, email, bio or location (case-insensitive substring) and
    optionally restrict to one or more roles. Results are ordered by name and paginated.
    """
    clauses = _filters(query, role)
    pagination = paginate(count(db, query, role), items_per_page, page)
    rows = (
        db.query(User)
        .filter(*clauses)
        .order_by(User.name, User.id)
        .offset(page_offset(pagination))
        .limit(pagination.items_per_page)
        .all()
    )
    return [StoredUser.model_validate(u) for u in rows], pagination


def get_one(db: Session, slug: str) -> StoredUser | None:
    return _to_stored(db.query(User).filter(User.slug == slug).first())


def exists(db: Session, slug: str) -> bool:
    return db.query(User.id).filter(User.slug == slug).first() is not None


def get_id(db: Session, slug: str) -> int | None:
    row = db.query(User.id).filter(User.slug == slug).first()
    return row[0] if row else None


def get_owner(db: Session) -> StoredUser | None:
    return _to_stored(db.query(User).filter(User.role == OWNER_ROLE).first())


def get_names(db: Session) -> list[UserNameItem]:
    """Slug and name of every account, ordered by name."""
    rows = db.query(User.slug, User.name).order_by(User.name).all()
    return [UserNameItem(slug=slug, name=name) for slug, name in rows]


def get_authors(db: Session, query: str | None = None) -> list[AuthorItem]:
    """Every account with its post count (zero when it has none), optionally filtered by slug or name."""
    post_count = func.count(Post.id).label("post_count")
    q = (
        db.query(User.slug, User.name, User.avatar, post_count)
        .outerjoin(Post, Post.author == User.id)
        .group_by(User.id, User.slug, User.name, User.avatar)
    )
    if query:
        pattern = _like(query)
        q = q.having(
            or_(User.slug.ilike(pattern, escape="\\"), User.name.ilike(pattern, escape="\\"))
        )
    rows = q.order_by(User.slug, post_count).all()
    return [
        AuthorItem(slug=slug, name=name, avatar=avatar or "", post_count=n or 0)
        for slug, name, avatar, n in rows
    ]


def verify_password(db: Session, slug: str, password: str) -> bool:
    """True if slug names an account whose stored hash matches password."""
    user = get_one(db, slug)
    if user is None:
        return False
    return check_password(password, user.password)


def url(settings: "Settings", slug: str = "", page: int = 1) -> str:
    """Public author URL, e.g. /author/jane or /author/jane/page/2."""
    parts = [settings.FRAG_AUTHOR, slug]
    if page > 1:
        parts += [settings.FRAG_PAGE, str(page)]
    path = "/".join(p.strip("/") for p in parts if p)
    return f"{settings.SITE_URL}/{path}"


def _commit(db: Session, action: str, slug: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "User write failed",
            extra={"action": action, "slug": slug, "error": type(e).__name__},
        )
        raise UserPersistenceError(f"Database error while trying to {action} user {slug}", cause=e) from e


def _log_rejection(action: str, slug: str | None, rejected: UserRejected) -> None:
    logger.info(
        "User %s rejected",
        action,
        extra={"action": action, "slug": slug, "reason": rejected.reason.value},
    )


def create(
    db: Session,
    candidate: UserCandidate,
    settings: "Settings",
    hash_password: PasswordHasher | None = None,
) -> UserAccepted | UserRejected:
    """Validate and insert a new account."""
    kwargs = {"hash_password": hash_password} if hash_password else {}
    decision = validate_for_create(
        candidate,
        existing_owner_present=get_owner(db) is not None,
        exists_at_slug=lambda s: exists(db, s),
        min_password_length=settings.PASSWORD_MIN_LENGTH,
        is_protected_slug=lambda s: is_protected_slug(s, settings),
        **kwargs,
    )
    if isinstance(decision, UserRejected):
        _log_rejection("create", candidate.slug, decision)
        return decision

    record: NormalizedUser = decision.record
    db.add(User(**record.model_dump()))
    _commit(db, "create", record.slug)
    logger.info("User created", extra={"slug": record.slug, "role": record.role})
    return decision


def edit(
    db: Session,
    slug: str,
    patch: UserPatch,
    settings: "Settings",
    hash_password: PasswordHasher | None = None,
) -> UserAccepted | UserRejected:
    """Validate patch against the stored account at slug and write the merged record."""
    kwargs = {"hash_password": hash_password} if hash_password else {}
    decision = validate_for_edit(
        get_one(db, slug),
        patch,
        min_password_length=settings.PASSWORD_MIN_LENGTH,
        exists_at_slug=lambda s: exists(db, s),
        is_protected_slug=lambda s: is_protected_slug(s, settings),
        **kwargs,
    )
    if isinstance(decision, UserRejected):
        _log_rejection("edit", slug, decision)
        return decision

    record = decision.record
    try:
        db.query(User).filter(User.slug == slug).update(
            record.model_dump(), synchronize_session=False
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "User write failed",
            extra={"action": "update", "slug": slug, "error": type(e).__name__},
        )
        raise UserPersistenceError(f"Database error while trying to update user {slug}", cause=e) from e
    _commit(db, "update", slug)
    logger.info(
        "User updated",
        extra={"slug": slug, "new_slug": record.slug, "role": record.role},
    )
    return decision


def delete(
    db: Session,
    slug: str,
    recipient_slug: str | None = None,
) -> tuple[RecipientAccepted | UserRejected, int]:
    """
    Delete the account at slug after moving its posts to the recipient (the owner by default).

    Reassignment and deletion share one transaction: if either fails, neither is applied.
    Returns the decision and the number of posts reassigned.
    """
    target = get_one(db, slug)
    explicit = get_one(db, recipient_slug) if recipient_slug else None
    decision = validate_for_delete(
        target,
        explicit,
        lambda: get_owner(db),
        recipient_requested=bool(recipient_slug),
    )
    if isinstance(decision, UserRejected):
        _log_rejection("delete", slug, decision)
        return decision, 0

    recipient = decision.recipient
    try:
        moved = reassign_posts(db, target.id, recipient.id)
        deleted = (
            db.query(User)
            .filter(User.slug == slug, User.role != OWNER_ROLE)
            .delete(synchronize_session=False)
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "User delete failed",
            extra={"slug": slug, "recipient": recipient.slug, "error": type(e).__name__},
        )
        raise UserPersistenceError(f"Unable to delete user {slug}", cause=e) from e
    if deleted != 1:
        db.rollback()
        raise UserPersistenceError(f"Unable to delete user {slug}")
    _commit(db, "delete", slug)
    logger.info(
        "User deleted",
        extra={"slug": slug, "recipient": recipient.slug, "posts_reassigned": moved},
    )
    return decision, moved
