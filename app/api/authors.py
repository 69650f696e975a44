"""Public author pages (HTML): /author/{slug} and /author/{slug}/page/{page}."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.services.author_page import render_author_page

router = APIRouter()


def _render_or_404(db: Session, slug: str, settings: Settings, page: int) -> HTMLResponse:
    html = render_author_page(db, slug, settings, page=page)
    if html is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    return HTMLResponse(content=html)


@router.get("/{slug}", response_class=HTMLResponse)
def author_page(
    slug: str,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HTMLResponse:
    """First page of an author's profile and posts."""
    return _render_or_404(db, slug, settings, 1)


@router.get("/{slug}/page/{page}", response_class=HTMLResponse)
def author_page_n(
    slug: str,
    page: Annotated[int, Path(ge=1)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HTMLResponse:
    """Later pages of an author's posts. 404 past the last page."""
    return _render_or_404(db, slug, settings, page)
