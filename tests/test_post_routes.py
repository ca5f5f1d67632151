"""
Inkwell Backend — Post API Tests
==================================

What:  End-to-end tests for /post, /post/{id}, /uploads/{path} and /health.
How:   The real app over httpx ASGITransport, backed by in-memory SQLite and a
       temporary upload directory.

What we test:
    ✅ Mutations require a session; reads are public
    ✅ Covers are stored, referenced and served back
    ✅ Only the author can update; a denied update changes nothing
    ✅ Listing is newest first and capped at 20
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from inkwell.models.post import Post
from inkwell.models.user import User

POST_FIELDS = {"title": "Hello", "summary": "First post", "content": "<p>Hi</p>"}


def _stored_files(app) -> list:
    return [p for p in app.state.cover_storage.storage_root.rglob("*") if p.is_file()]


class TestCreatePost:

    @pytest.mark.asyncio
    async def test_create_requires_session(self, client):
        response = await client.post("/post", data=POST_FIELDS)

        assert response.status_code == 401
        assert response.json()["error"] == "not_authenticated"

    @pytest.mark.asyncio
    async def test_create_without_cover(self, client, register_and_login):
        login = await register_and_login(client, "alice")

        response = await client.post("/post", data=POST_FIELDS)

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Hello"
        assert body["summary"] == "First post"
        assert body["content"] == "<p>Hi</p>"
        assert body["cover"] is None
        assert body["author"] == {"id": login["id"], "username": "alice"}

    @pytest.mark.asyncio
    async def test_create_with_cover_and_serve_it(self, client, register_and_login, sample_image_bytes):
        await register_and_login(client, "alice")

        response = await client.post(
            "/post",
            data=POST_FIELDS,
            files={"file": ("cover.png", sample_image_bytes, "image/png")},
        )

        assert response.status_code == 200
        cover = response.json()["cover"]
        assert cover.startswith("uploads/") and cover.endswith(".png")

        served = await client.get(f"/{cover}")
        assert served.status_code == 200
        assert served.content == sample_image_bytes
        assert "max-age" in served.headers["cache-control"]

    @pytest.mark.asyncio
    async def test_unsupported_cover_type(self, client, app, register_and_login):
        await register_and_login(client, "alice")

        response = await client.post(
            "/post",
            data=POST_FIELDS,
            files={"file": ("notes.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 400
        assert "not supported" in response.json()["message"]
        assert _stored_files(app) == []

    @pytest.mark.asyncio
    async def test_missing_title(self, client, register_and_login):
        await register_and_login(client, "alice")

        response = await client.post("/post", data={"summary": "s", "content": "c"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_remote_storage_returns_url(self, test_settings, app_factory, register_and_login, sample_image_bytes):
        app = app_factory(test_settings.model_copy(update={
            "cover_storage": "remote",
            "cover_remote_base_url": "https://cdn.example.com/covers",
        }))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            await register_and_login(client, "alice")
            response = await client.post(
                "/post",
                data=POST_FIELDS,
                files={"file": ("cover.jpg", sample_image_bytes, "image/jpeg")},
            )

        assert response.status_code == 200
        assert response.json()["cover"].startswith("https://cdn.example.com/covers/")


class TestUpdatePost:

    @pytest.mark.asyncio
    async def test_author_update_keeps_cover_and_author(self, client, register_and_login, sample_image_bytes):
        login = await register_and_login(client, "alice")
        created = (await client.post(
            "/post",
            data=POST_FIELDS,
            files={"file": ("cover.png", sample_image_bytes, "image/png")},
        )).json()

        response = await client.put(
            "/post",
            data={"id": created["id"], "title": "Edited", "summary": "Changed", "content": "<p>New</p>"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == created["id"]
        assert body["title"] == "Edited"
        assert body["content"] == "<p>New</p>"
        assert body["cover"] == created["cover"]
        assert body["author"]["id"] == login["id"]

    @pytest.mark.asyncio
    async def test_author_can_replace_cover(self, client, register_and_login, sample_image_bytes):
        await register_and_login(client, "alice")
        created = (await client.post("/post", data=POST_FIELDS)).json()

        response = await client.put(
            "/post",
            data={"id": created["id"], **POST_FIELDS},
            files={"file": ("new.webp", sample_image_bytes, "image/webp")},
        )

        assert response.status_code == 200
        assert response.json()["cover"].endswith(".webp")

    @pytest.mark.asyncio
    async def test_non_author_is_forbidden(self, client, app, register_and_login, sample_image_bytes):
        await register_and_login(client, "alice")
        created = (await client.post("/post", data=POST_FIELDS)).json()

        await register_and_login(client, "bob")
        response = await client.put(
            "/post",
            data={"id": created["id"], "title": "Defaced", "summary": "", "content": "x"},
            files={"file": ("evil.png", sample_image_bytes, "image/png")},
        )

        assert response.status_code == 403
        assert response.json()["message"] == "you are not the author"
        assert _stored_files(app) == []

        unchanged = (await client.get(f"/post/{created['id']}")).json()
        assert unchanged["title"] == "Hello"
        assert unchanged["content"] == "<p>Hi</p>"
        assert unchanged["author"]["username"] == "alice"

    @pytest.mark.asyncio
    async def test_update_requires_session(self, client):
        response = await client.put("/post", data={"id": str(uuid.uuid4()), **POST_FIELDS})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_unknown_post(self, client, register_and_login):
        await register_and_login(client, "alice")

        response = await client.put("/post", data={"id": str(uuid.uuid4()), **POST_FIELDS})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_malformed_id(self, client, register_and_login):
        await register_and_login(client, "alice")

        response = await client.put("/post", data={"id": "not-a-uuid", **POST_FIELDS})

        assert response.status_code == 400


class TestReadPosts:

    @pytest.mark.asyncio
    async def test_get_post_is_public(self, client, register_and_login):
        await register_and_login(client, "alice")
        created = (await client.post("/post", data=POST_FIELDS)).json()
        await client.post("/logout")

        response = await client.get(f"/post/{created['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == created["id"]
        assert body["title"] == "Hello"
        assert body["author"] == created["author"]

    @pytest.mark.asyncio
    async def test_get_unknown_post(self, client):
        response = await client.get(f"/post/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, client):
        response = await client.get("/post/not-a-uuid")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_empty(self, client):
        response = await client.get("/post")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_list_newest_first_capped_at_20(self, client, db_session):
        author = User(username="alice", password_hash="$2b$04$placeholder")
        db_session.add(author)
        await db_session.flush()
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        db_session.add_all([
            Post(
                title=f"post {i}",
                summary="",
                content="body",
                author_id=author.id,
                created_at=base + timedelta(minutes=i),
                updated_at=base + timedelta(minutes=i),
            )
            for i in range(25)
        ])
        await db_session.commit()

        response = await client.get("/post")

        assert response.status_code == 200
        titles = [p["title"] for p in response.json()]
        assert titles == [f"post {i}" for i in range(24, 4, -1)]
        assert all(p["author"]["username"] == "alice" for p in response.json())

        assert len((await client.get("/post?limit=5")).json()) == 5
        assert len((await client.get("/post?limit=500")).json()) == 20


class TestUploadsAndHealth:

    @pytest.mark.asyncio
    async def test_upload_path_traversal(self, client):
        response = await client.get("/uploads/..%2F..%2Fetc%2Fpasswd")

        assert response.status_code in (400, 404)

    @pytest.mark.asyncio
    async def test_missing_upload(self, client):
        response = await client.get("/uploads/2024/01/01/missing.png")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["cover_storage"] == "local"
