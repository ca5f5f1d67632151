"""
Inkwell Backend — Post Response Schemas
=========================================

What:  Pydantic models describing posts as the API returns them.
How:   Post bodies arrive as multipart form fields (they can carry a cover
       file), so only the response side is modelled here.

The author is populated with id and username only; password hashes and
other user columns never leave the users table through this schema.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AuthorSummary(BaseModel):
    id: uuid.UUID
    username: str

    model_config = {"from_attributes": True}


class PostResponse(BaseModel):
    """
    What:  Full representation of a post.
    Who:   Returned by every /post endpoint (single item or list element).
    """

    id: uuid.UUID = Field(description="Unique post identifier (UUID)")
    title: str
    summary: str
    content: str
    cover: Optional[str] = Field(
        default=None,
        description="Cover reference: 'uploads/...' path or remote URL; null when absent",
    )
    author: AuthorSummary
    created_at: datetime = Field(description="When the post was created (UTC)")
    updated_at: datetime = Field(description="When the post was last changed (UTC)")

    model_config = {"from_attributes": True}
