"""ORM model for blog posts (only the columns the account service touches)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.models.base import Base


class Post(Base):
    """Blog post. author references users.id and is reassigned when its author is deleted."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(191), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")
    author = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(32), nullable=False, default="published")
    pub_date = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
