"""Post queries the account service depends on: reassignment and author listings."""

from sqlalchemy.orm import Session

from app.models import Post, User
from app.schemas.pagination import Pagination
from app.services.pagination import page_offset, paginate

PUBLISHED_STATUS = "published"


def reassign_posts(db: Session, from_user_id: int, to_user_id: int) -> int:
    """
    Move every post authored by from_user_id to to_user_id. Does not commit; the caller owns
    the transaction. Returns the number of posts moved.
    """
    return (
        db.query(Post)
        .filter(Post.author == from_user_id)
        .update({Post.author: to_user_id}, synchronize_session=False)
    )


def get_posts_by_author(
    db: Session,
    author_slug: str,
    page: int = 1,
    items_per_page: int = 10,
) -> tuple[list[Post], Pagination]:
    """Published posts by the author, newest first, for one page."""
    base = (
        db.query(Post)
        .join(User, User.id == Post.author)
        .filter(User.slug == author_slug, Post.status == PUBLISHED_STATUS)
    )
    pagination = paginate(base.count(), items_per_page, page)
    posts = (
        base.order_by(Post.pub_date.desc(), Post.id.desc())
        .offset(page_offset(pagination))
        .limit(pagination.items_per_page)
        .all()
    )
    return posts, pagination
