"""
Inkwell Backend — Post SQLAlchemy Model
=========================================

What:  ORM model for the `posts` table.
Who:   Written by PostService (create/update); read by the listing and
       detail endpoints.

Table Design:
    - author_id: foreign key to users.id, set once from the requester's token
      claims and never changed by updates
    - cover: opaque reference produced by the configured cover storage
      (relative `uploads/...` path for local storage, URL for remote storage)
    - created_at DESC index: the listing query is always "newest first"
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inkwell.database import Base
from inkwell.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Post(Base):
    """
    A blog post owned by exactly one author.

    Lifecycle:
        1. Created by an authenticated user (author_id = requester)
        2. Updated only by its author (title, summary, content, cover)
        3. Never deleted by the application
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    summary: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # Rendered HTML/markdown from the editor; no length limit
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    cover: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
        default=None,
        comment="Opaque cover reference (local path or remote URL)",
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    author: Mapped[User] = relationship(back_populates="posts")

    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, title='{self.title}', author_id={self.author_id})>"
