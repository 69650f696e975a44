"""Render an author's public profile page: profile, paginated posts and page meta."""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup
from sqlalchemy.orm import Session

from app.services import users
from app.services.posts import get_posts_by_author

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.schemas.user import StoredUser

logger = logging.getLogger(__name__)

AUTHOR_TEMPLATE = "author.html"
META_DESCRIPTION_MAX_CHARS = 160


@lru_cache
def _environment(theme_dir: str) -> Environment:
    return Environment(
        loader=FileSystemLoader(theme_dir),
        autoescape=select_autoescape(["html", "xml"]),
    )


def plain_text(value: str | None) -> str:
    """Strip markup tags and collapse whitespace."""
    if not value:
        return ""
    return Markup(value).striptags()


def truncate_chars(value: str, max_chars: int) -> str:
    """Cut at a word boundary so the result is at most max_chars long."""
    if len(value) <= max_chars:
        return value
    cut = value[:max_chars].rsplit(" ", 1)[0].rstrip(" .,;:")
    return cut or value[:max_chars]


def _site_asset_url(settings: "Settings", path: str) -> str:
    if path.startswith(("http://", "https://")):
        return path
    return f"{settings.SITE_URL}/{path.lstrip('/')}"


def build_author_meta(author: "StoredUser", settings: "Settings") -> dict[str, Any]:
    """Title, description, schema.org JSON-LD, Open Graph and Twitter Card for an author page."""
    bio_text = plain_text(author.bio)
    author_url = users.url(settings, author.slug)
    avatar_url = _site_asset_url(settings, author.avatar) if author.avatar else None
    cover_url = _site_asset_url(settings, author.cover) if author.cover else None
    page_title = f"{author.name} · {settings.SITE_TITLE}"

    return {
        "title": author.name,
        "description": truncate_chars(bio_text, META_DESCRIPTION_MAX_CHARS),
        "ld_json": {
            "@context": "https://schema.org",
            "@type": "Person",
            "name": author.name,
            "description": bio_text,
            "url": author_url,
            "image": {"@type": "ImageObject", "url": avatar_url} if avatar_url else None,
            "sameAs": [author.website] if author.website else None,
        },
        "open_graph": {
            "og:type": "profile",
            "og:site_name": settings.SITE_TITLE,
            "og:title": page_title,
            "og:description": bio_text,
            "og:url": author_url,
            "og:image": avatar_url,
        },
        "twitter_card": {
            "twitter:card": "summary_large_image" if cover_url else "summary",
            "twitter:site": f"@{settings.SITE_TWITTER}" if settings.SITE_TWITTER else None,
            "twitter:title": page_title,
            "twitter:description": bio_text,
            "twitter:creator": f"@{author.twitter}" if author.twitter else None,
            "twitter:url": author_url,
            "twitter:image": cover_url,
        },
    }


def render_author_page(db: Session, slug: str, settings: "Settings", page: int = 1) -> str | None:
    """
    Return the rendered HTML for an author page, or None when the author does not exist or the
    requested page is past the last page of their posts.
    """
    author = users.get_one(db, slug)
    if author is None:
        return None

    posts, pagination = get_posts_by_author(
        db, slug, page=page, items_per_page=settings.POSTS_PER_PAGE
    )
    if page < 1 or page > pagination.total_pages:
        return None

    pagination = pagination.model_copy(
        update={
            "next_page_url": users.url(settings, slug, pagination.next_page)
            if pagination.next_page
            else None,
            "previous_page_url": users.url(settings, slug, pagination.previous_page)
            if pagination.previous_page
            else None,
        }
    )

    template = _environment(settings.THEME_DIR).get_template(AUTHOR_TEMPLATE)
    html = template.render(
        author=author,
        posts=posts,
        pagination=pagination,
        meta=build_author_meta(author, settings),
        site_title=settings.SITE_TITLE,
    )
    logger.debug("Rendered author page", extra={"slug": slug, "page": page})
    return html
