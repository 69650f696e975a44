"""Pydantic schema for page metadata shared by user listings and author pages."""

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Page metadata. previous/next are None at the edges."""

    total_items: int = Field(..., ge=0)
    items_per_page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=1)
    current_page: int = Field(..., ge=1)
    previous_page: int | None = None
    next_page: int | None = None
    previous_page_url: str | None = None
    next_page_url: str | None = None
