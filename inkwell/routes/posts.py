"""
Inkwell Backend — Post Route Handlers
=======================================

What:  POST /post, PUT /post, GET /post, GET /post/{id}, GET /uploads/{path}.
How:   Mutations arrive as multipart/form-data (text fields plus an optional
       `file` cover image) and require a valid session cookie. Reads are
       public.

Caching:
    - GET /post: no caching (new posts appear at the top)
    - GET /uploads/...: long public cache; cover files are never rewritten
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.database import get_db_session
from inkwell.dependencies import get_cover_storage, get_current_claims, get_post_service
from inkwell.exceptions import NotFoundError
from inkwell.schemas.common import ErrorResponse
from inkwell.schemas.post import PostResponse
from inkwell.services.cover_storage import CoverStorage, LocalCoverStorage
from inkwell.services.post_service import MAX_PAGE_SIZE, CoverUpload, PostService
from inkwell.services.tokens import TokenClaims

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])


async def _read_cover(file: Optional[UploadFile]) -> Optional[CoverUpload]:
    """Read an optional multipart cover; an empty file field counts as no cover."""
    if file is None or not file.filename:
        return None
    try:
        content = await file.read()
    finally:
        await file.close()
    logger.info("Received cover upload: filename=%s, size=%d bytes", file.filename, len(content))
    return CoverUpload(filename=file.filename, content=content)


@router.post(
    "/post",
    response_model=PostResponse,
    responses={
        400: {"description": "Invalid input or cover file", "model": ErrorResponse},
        401: {"description": "Missing or invalid session", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a post",
)
async def create_post(
    title: str = Form(..., min_length=1, max_length=200),
    summary: str = Form(default="", max_length=500),
    content: str = Form(...),
    file: Optional[UploadFile] = File(default=None, description="Cover image"),
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    cover = await _read_cover(file)
    return await posts.create_post(
        db=db,
        claims=claims,
        title=title,
        summary=summary,
        content=content,
        cover=cover,
    )


@router.put(
    "/post",
    response_model=PostResponse,
    responses={
        400: {"description": "Invalid input or cover file", "model": ErrorResponse},
        401: {"description": "Missing or invalid session", "model": ErrorResponse},
        403: {"description": "Requester is not the author", "model": ErrorResponse},
        404: {"description": "Post not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update a post (author only)",
)
async def update_post(
    id: uuid.UUID = Form(..., description="Post id"),
    title: str = Form(..., min_length=1, max_length=200),
    summary: str = Form(default="", max_length=500),
    content: str = Form(...),
    file: Optional[UploadFile] = File(default=None, description="Replacement cover image"),
    claims: TokenClaims = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    cover = await _read_cover(file)
    return await posts.update_post(
        db=db,
        claims=claims,
        post_id=id,
        title=title,
        summary=summary,
        content=content,
        cover=cover,
    )


@router.get(
    "/post",
    response_model=List[PostResponse],
    summary="Newest posts (at most 20)",
)
async def list_posts(
    limit: int = Query(default=MAX_PAGE_SIZE, ge=1, description="Values above 20 are capped"),
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> List[PostResponse]:
    return await posts.list_posts(db, limit=limit)


@router.get(
    "/post/{post_id}",
    response_model=PostResponse,
    responses={404: {"description": "Post not found", "model": ErrorResponse}},
    summary="Get a single post",
)
async def get_post(
    post_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    posts: PostService = Depends(get_post_service),
) -> PostResponse:
    return await posts.get_post(db, post_id)


@router.get(
    "/uploads/{file_path:path}",
    summary="Serve a locally stored cover image",
    responses={404: {"description": "File not found", "model": ErrorResponse}},
)
async def serve_cover(
    file_path: str,
    storage: CoverStorage = Depends(get_cover_storage),
) -> FileResponse:
    """
    Serve covers written by LocalCoverStorage.

    Remote and disabled storage keep no local files, so every path is 404.
    The storage resolves the path and rejects anything outside its root.
    """
    if not isinstance(storage, LocalCoverStorage):
        raise NotFoundError(resource="file", resource_id=file_path)

    full_path = storage.resolve(file_path)
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
