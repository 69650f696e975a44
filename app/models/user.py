"""ORM model for blog accounts (authors, editors, admins and the owner)."""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, func, text

from app.models.base import Base


class User(Base):
    """
    Blog account. Authors posts, signs in to the admin panel, has a public author page.

    role: 'owner', 'admin', 'editor' or 'author'. Exactly one account holds 'owner'.
    Optional profile fields are stored as empty strings, never NULL.
    """

    __tablename__ = "users"
    __table_args__ = (
        # At most one owner; mirrors the partial index created by the migration.
        Index(
            "uq_users_single_owner",
            "role",
            unique=True,
            postgresql_where=text("role = 'owner'"),
            sqlite_where=text("role = 'owner'"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(191), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)
    reset_token = Column(String(255), nullable=False, default="")
    role = Column(String(32), nullable=False, default="author", index=True)
    created = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    bio = Column(Text, nullable=False, default="")
    cover = Column(String(1024), nullable=False, default="")
    avatar = Column(String(1024), nullable=False, default="")
    twitter = Column(String(255), nullable=False, default="")
    location = Column(String(255), nullable=False, default="")
    website = Column(String(1024), nullable=False, default="")
