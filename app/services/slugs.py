"""Slug normalization, reserved-slug check and email format check for accounts."""

import re
import unicodedata
from typing import TYPE_CHECKING

from email_validator import EmailNotValidError, validate_email

from app.core.config import get_settings

if TYPE_CHECKING:
    from app.core.config import Settings

MAX_SLUG_LENGTH = 191

# Any run of characters outside [a-z0-9] becomes a single hyphen.
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")

# Reserved regardless of configured URL fragments (routes and static mounts).
_SYSTEM_SLUGS: frozenset[str] = frozenset(
    {"api", "content", "docs", "health", "redoc", "source", "uploads"}
)


def slugify(raw: str | None) -> str:
    """
    Lowercase, transliterate to ASCII and join alphanumeric runs with hyphens.
    Idempotent: slugify(slugify(x)) == slugify(x).
    """
    if not raw or not isinstance(raw, str):
        return ""
    ascii_text = (
        unicodedata.normalize("NFKD", raw).encode("ascii", "ignore").decode("ascii")
    )
    slug = _NON_SLUG_CHARS.sub("-", ascii_text.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")


def protected_slugs(settings: "Settings | None" = None) -> frozenset[str]:
    """Slugs no account may use: system routes plus every configured URL fragment."""
    s = settings or get_settings()
    fragments = {
        s.FRAG_ADMIN,
        s.FRAG_AUTHOR,
        s.FRAG_BLOG,
        s.FRAG_FEED,
        s.FRAG_PAGE,
        s.FRAG_SEARCH,
        s.FRAG_TAG,
    }
    return _SYSTEM_SLUGS | frozenset(f.lower() for f in fragments)


def is_protected_slug(slug: str, settings: "Settings | None" = None) -> bool:
    """True if slug is reserved for the platform."""
    return slug.lower() in protected_slugs(settings)


def is_valid_email(value: str | None) -> bool:
    """Format check only; no DNS or deliverability lookups."""
    if not value or not isinstance(value, str):
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
