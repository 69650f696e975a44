"""User lifecycle validation: accept or reject account creation, edits and deletion.

Pure decision functions. Storage lookups (slug existence, owner lookup) and password hashing
are passed in, so every decision depends only on the arguments. Inputs are never mutated;
callers receive either a complete normalized record or a UserRejected with a reason.
"""

from collections.abc import Callable

from app.core.security import hash_password as default_hash_password
from app.schemas.user import (
    DEFAULT_ROLE,
    OPTIONAL_FIELDS,
    OWNER_ROLE,
    ROLE_VALUES,
    DeleteDecision,
    NormalizedUser,
    RecipientAccepted,
    StoredUser,
    UserAccepted,
    UserCandidate,
    UserDecision,
    UserPatch,
    UserRejected,
    UserRejection,
)
from app.services.slugs import is_protected_slug as default_is_protected_slug
from app.services.slugs import is_valid_email, slugify

SlugProbe = Callable[[str], bool]
OwnerLookup = Callable[[], StoredUser | None]
PasswordHasher = Callable[[str], str]

OWNER_CHANGE_MESSAGE = "The owner role cannot be revoked or reassigned"


def _reject(reason: UserRejection, message: str) -> UserRejected:
    return UserRejected(reason=reason, message=message)


def normalize_optional_fields(fields: dict[str, object]) -> dict[str, object]:
    """Return a copy with missing optional profile fields as "" and the Twitter @ removed.

    Values are otherwise kept as given; only the Twitter handle is trimmed.
    """
    out = dict(fields)
    for key in OPTIONAL_FIELDS:
        value = out.get(key)
        out[key] = "" if value is None else str(value)
    out["twitter"] = out["twitter"].strip().lstrip("@")
    return out


def normalize_role(role: object) -> str:
    """Unknown roles fall back to author."""
    return role if isinstance(role, str) and role in ROLE_VALUES else DEFAULT_ROLE


def _check_slug(
    raw_slug: str | None, exists_at_slug: SlugProbe, is_protected_slug: SlugProbe
) -> str | UserRejected:
    """Normalize a requested slug and make sure it is usable and free."""
    slug = slugify(raw_slug)
    if not slug or is_protected_slug(slug):
        return _reject(UserRejection.INVALID_SLUG, f"Invalid slug: {slug or raw_slug!r}")
    if exists_at_slug(slug):
        return _reject(UserRejection.ALREADY_EXISTS, f"User already exists: {slug}")
    return slug


def _check_name(name: str | None) -> UserRejected | None:
    if not name or not name.strip():
        return _reject(UserRejection.INVALID_NAME, "No name specified")
    return None


def _check_email(email: str | None) -> UserRejected | None:
    if not is_valid_email(email):
        return _reject(UserRejection.INVALID_EMAIL, f"Invalid email address: {email}")
    return None


def _check_password_length(password: str | None, min_length: int) -> UserRejected | None:
    if len(password or "") < min_length:
        return _reject(
            UserRejection.PASSWORD_TOO_SHORT,
            f"Passwords must be at least {min_length} characters long",
        )
    return None


def _hash(password: str, hasher: PasswordHasher) -> str | UserRejected:
    try:
        hashed = hasher(password)
    except (ValueError, TypeError):
        return _reject(UserRejection.INVALID_PASSWORD, "Invalid password")
    if not hashed:
        return _reject(UserRejection.INVALID_PASSWORD, "Invalid password")
    return hashed


def validate_for_create(
    candidate: UserCandidate,
    *,
    existing_owner_present: bool,
    exists_at_slug: SlugProbe,
    min_password_length: int,
    hash_password: PasswordHasher = default_hash_password,
    is_protected_slug: SlugProbe = default_is_protected_slug,
) -> UserDecision:
    """
    Decide whether a new account may be created.

    Checks run in a fixed order (slug, uniqueness, name, email, password length, owner) and the
    first failure wins. On success the password is hashed and the record is fully normalized.
    """
    slug = _check_slug(candidate.slug, exists_at_slug, is_protected_slug)
    if isinstance(slug, UserRejected):
        return slug

    rejection = (
        _check_name(candidate.name)
        or _check_email(candidate.email)
        or _check_password_length(candidate.password, min_password_length)
    )
    if rejection:
        return rejection

    if candidate.role == OWNER_ROLE and existing_owner_present:
        return _reject(UserRejection.CANNOT_CHANGE_OWNER, OWNER_CHANGE_MESSAGE)

    fields = normalize_optional_fields(candidate.model_dump())
    hashed = _hash(candidate.password or "", hash_password)
    if isinstance(hashed, UserRejected):
        return hashed

    fields.update(
        slug=slug,
        name=(candidate.name or "").strip(),
        email=(candidate.email or "").strip(),
        role=normalize_role(candidate.role),
        password=hashed,
    )
    return UserAccepted(record=NormalizedUser.model_validate(fields))


def _toggles_owner(current_role: str, requested_role: str | None) -> bool:
    if requested_role is None:
        return False
    return (current_role == OWNER_ROLE) != (requested_role == OWNER_ROLE)


def validate_for_edit(
    existing: StoredUser | None,
    patch: UserPatch,
    *,
    min_password_length: int,
    exists_at_slug: SlugProbe,
    hash_password: PasswordHasher = default_hash_password,
    is_protected_slug: SlugProbe = default_is_protected_slug,
) -> UserDecision:
    """
    Decide whether an existing account may be updated with patch.

    Patch fields that are omitted or null keep the stored value. The password is only re-hashed
    when a new one is supplied, and the slug is only re-checked when it actually changes.
    """
    if existing is None:
        return _reject(UserRejection.NOT_FOUND, "User not found")

    if _toggles_owner(existing.role, patch.role):
        return _reject(UserRejection.CANNOT_CHANGE_OWNER, OWNER_CHANGE_MESSAGE)

    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    new_password = changes.pop("password", None)

    merged: dict[str, object] = existing.model_dump(exclude={"id", "created"})
    merged.update(changes)

    rejection = _check_name(merged.get("name")) or _check_email(merged.get("email"))
    if rejection:
        return rejection

    merged = normalize_optional_fields(merged)
    merged["role"] = normalize_role(merged.get("role"))
    merged["name"] = str(merged["name"]).strip()
    merged["email"] = str(merged["email"]).strip()

    if new_password is not None:
        rejection = _check_password_length(new_password, min_password_length)
        if rejection:
            return rejection
        hashed = _hash(new_password, hash_password)
        if isinstance(hashed, UserRejected):
            return hashed
        merged["password"] = hashed

    if merged["slug"] != existing.slug:
        # Normalizing may map the request back onto the account's own slug.
        probe = exists_at_slug
        new_slug = _check_slug(
            str(merged["slug"]),
            lambda s: s != existing.slug and probe(s),
            is_protected_slug,
        )
        if isinstance(new_slug, UserRejected):
            return new_slug
        merged["slug"] = new_slug

    return UserAccepted(record=NormalizedUser.model_validate(merged))


def validate_for_delete(
    target: StoredUser | None,
    explicit_recipient: StoredUser | None,
    owner_lookup: OwnerLookup,
    *,
    recipient_requested: bool = False,
) -> DeleteDecision:
    """
    Decide whether target may be deleted and who receives its posts.

    recipient_requested means the caller named a recipient; if that lookup came back empty the
    request fails instead of silently falling back to the owner. The caller must reassign posts
    before deleting the account, inside the same transaction.
    """
    if target is None:
        return _reject(UserRejection.INVALID_USER, "Invalid user")

    if target.role == OWNER_ROLE:
        return _reject(UserRejection.CANNOT_DELETE_OWNER, "Cannot delete the owner account")

    if explicit_recipient is not None:
        recipient = explicit_recipient
    elif recipient_requested:
        recipient = None
    else:
        recipient = owner_lookup()

    if recipient is None or recipient.slug == target.slug:
        return _reject(
            UserRejection.UNABLE_TO_ASSIGN_POSTS,
            "No account available to receive the deleted user's posts",
        )
    return RecipientAccepted(recipient=recipient)
