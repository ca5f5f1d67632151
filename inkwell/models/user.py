"""
Inkwell Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table (the credential store).
Who:   Written by AuthService.register(); read by login and by post queries
       that populate the author's username.

Table Design:
    - UUID primary key: non-sequential, so ids cannot be enumerated
    - username: unique constraint is the final guard against duplicate
      registrations that race past the lookup in AuthService
    - password_hash: bcrypt output (algorithm, cost and salt embedded);
      the plaintext is never stored
"""

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inkwell.database import Base

if TYPE_CHECKING:
    from inkwell.models.post import Post


class User(Base):
    """
    A registered author.

    Created on registration and immutable afterwards; never deleted by the
    application.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        comment="Login name, unique across all users",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash with embedded salt",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    posts: Mapped[List["Post"]] = relationship(back_populates="author")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
