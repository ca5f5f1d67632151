"""
Inkwell Backend — Post Authorization Gate
===========================================

What:  Decides whether the holder of a verified token may mutate a post.
Rule:  Only the post's author may change it. The requester's user id from
       the token claims is compared with the stored author id as uuid.UUID
       values, never as serialized strings.
Who:   PostService.update_post(), before any cover upload or store write.
"""

import logging

from inkwell.exceptions import AuthorizationError
from inkwell.models.post import Post
from inkwell.services.tokens import TokenClaims

logger = logging.getLogger(__name__)


def can_mutate(claims: TokenClaims, post: Post) -> bool:
    return claims.user_id == post.author_id


def ensure_can_mutate(claims: TokenClaims, post: Post) -> None:
    """Raise AuthorizationError unless the requester authored the post."""
    if not can_mutate(claims, post):
        logger.warning(
            "User %s denied mutation of post %s (author %s)",
            claims.user_id,
            post.id,
            post.author_id,
        )
        raise AuthorizationError(context={"post_id": str(post.id)})
