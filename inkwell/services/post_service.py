"""
Inkwell Backend — Post Service (Business Logic)
=================================================

What:  Create, update, list and fetch blog posts.
How:   Composes the configured CoverStorage and the authorization gate;
       receives the per-request database session and the verified token
       claims of the requester on every mutating call.
Who:   /post route handlers.

Update Flow (PUT /post):
    ┌───────────┐    ┌────────────────┐    ┌─────────────┐    ┌──────────┐
    │ Load post │───▶│ Authorization  │───▶│ Store cover │───▶│  Flush   │
    │ (404)     │    │ gate (403)     │    │ (optional)  │    │  (DB)    │
    └───────────┘    └────────────────┘    └─────────────┘    └──────────┘

    A denied requester never reaches the cover storage or the store write.
    If the write fails after a cover was stored, the cover is discarded.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from inkwell.exceptions import DatabaseError, NotFoundError
from inkwell.models.post import Post
from inkwell.schemas.post import PostResponse
from inkwell.services.authorization import ensure_can_mutate
from inkwell.services.cover_storage import CoverStorage
from inkwell.services.tokens import TokenClaims

logger = logging.getLogger(__name__)

# Hard cap on GET /post
MAX_PAGE_SIZE = 20


@dataclass(frozen=True)
class CoverUpload:
    filename: str
    content: bytes


class PostService:
    """
    Business logic for posts.

    Error Handling Strategy:
        SQLAlchemy errors are wrapped in DatabaseError (generic message, details
        logged). NotFoundError, AuthorizationError and cover validation errors
        propagate unchanged.
    """

    def __init__(self, cover_storage: CoverStorage):
        self.cover_storage = cover_storage

    async def _store_cover(self, cover: Optional[CoverUpload]) -> Optional[str]:
        if cover is None:
            return None
        return await self.cover_storage.store(cover.filename, cover.content)

    async def _load_post(self, db: AsyncSession, post_id: uuid.UUID) -> Post:
        result = await db.execute(
            select(Post)
            .options(selectinload(Post.author))
            .where(Post.id == post_id)
            .execution_options(populate_existing=True)
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post

    async def create_post(
        self,
        db: AsyncSession,
        claims: TokenClaims,
        title: str,
        summary: str,
        content: str,
        cover: Optional[CoverUpload] = None,
    ) -> PostResponse:
        """
        Create a post authored by the requester.

        Raises:
            ValidationError:   rejected cover upload
            FileStorageError:  cover could not be written
            DatabaseError:     insert failed
        """
        reference = await self._store_cover(cover)

        post = Post(
            title=title,
            summary=summary,
            content=content,
            cover=reference,
            author_id=claims.user_id,
        )
        db.add(post)
        try:
            await db.flush()
            post = await self._load_post(db, post.id)
        except SQLAlchemyError as e:
            if reference:
                await self.cover_storage.discard(reference)
            logger.error("Database error creating post for %s: %s", claims.user_id, e, exc_info=True)
            raise DatabaseError(
                message="Could not save the post. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Post created: %s by %s", post.id, claims.username)
        return PostResponse.model_validate(post)

    async def update_post(
        self,
        db: AsyncSession,
        claims: TokenClaims,
        post_id: uuid.UUID,
        title: str,
        summary: str,
        content: str,
        cover: Optional[CoverUpload] = None,
    ) -> PostResponse:
        """
        Update a post's text fields and, when a new file is uploaded, its cover.

        The author is never changed. Concurrent updates are last-write-wins.

        Raises:
            NotFoundError:      no post with this id
            AuthorizationError: requester is not the author
            DatabaseError:      load or write failed
        """
        try:
            post = await self._load_post(db, post_id)
        except SQLAlchemyError as e:
            logger.error("Database error loading post %s: %s", post_id, e)
            raise DatabaseError(context={"post_id": str(post_id)})

        ensure_can_mutate(claims, post)

        reference = await self._store_cover(cover)

        post.title = title
        post.summary = summary
        post.content = content
        if reference:
            post.cover = reference

        try:
            await db.flush()
            post = await self._load_post(db, post.id)
        except SQLAlchemyError as e:
            if reference:
                await self.cover_storage.discard(reference)
            logger.error("Database error updating post %s: %s", post_id, e, exc_info=True)
            raise DatabaseError(
                message="Could not update the post. Please try again.",
                context={"post_id": str(post_id), "error_type": type(e).__name__},
            )

        logger.info("Post updated: %s by %s", post.id, claims.username)
        return PostResponse.model_validate(post)

    async def get_post(self, db: AsyncSession, post_id: uuid.UUID) -> PostResponse:
        try:
            post = await self._load_post(db, post_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, e)
            raise DatabaseError(
                message="Could not retrieve the post. Please try again.",
                context={"post_id": str(post_id)},
            )
        return PostResponse.model_validate(post)

    async def list_posts(self, db: AsyncSession, limit: int = MAX_PAGE_SIZE) -> List[PostResponse]:
        """
        Newest posts first, at most 20.

        Query plan:
            SELECT ... FROM posts ORDER BY created_at DESC, id DESC LIMIT :limit
            → idx_posts_created_at; authors loaded with one IN query
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        try:
            result = await db.execute(
                select(Post)
                .options(selectinload(Post.author))
                .order_by(desc(Post.created_at), desc(Post.id))
                .limit(limit)
            )
            posts = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return [PostResponse.model_validate(post) for post in posts]
