"""
Inkwell Backend — Authorization Gate Unit Tests
=================================================
"""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from inkwell.exceptions import AuthorizationError
from inkwell.services.authorization import can_mutate, ensure_can_mutate
from inkwell.services.tokens import TokenClaims


def _claims(user_id: uuid.UUID) -> TokenClaims:
    return TokenClaims(username="alice", user_id=user_id, issued_at=datetime.now(timezone.utc))


class TestAuthorizationGate:

    def test_author_may_mutate(self):
        author_id = uuid.uuid4()
        post = SimpleNamespace(id=uuid.uuid4(), author_id=author_id)

        assert can_mutate(_claims(author_id), post) is True
        ensure_can_mutate(_claims(author_id), post)

    def test_ids_compare_by_value(self):
        author_id = uuid.uuid4()
        post = SimpleNamespace(id=uuid.uuid4(), author_id=uuid.UUID(str(author_id)))

        assert can_mutate(_claims(author_id), post) is True

    def test_other_user_is_denied(self):
        post = SimpleNamespace(id=uuid.uuid4(), author_id=uuid.uuid4())

        assert can_mutate(_claims(uuid.uuid4()), post) is False
        with pytest.raises(AuthorizationError, match="you are not the author") as exc_info:
            ensure_can_mutate(_claims(uuid.uuid4()), post)
        assert exc_info.value.context["post_id"] == str(post.id)
