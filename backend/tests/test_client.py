"""Tests for the async API client, run against the app in-process."""

import io
import httpx
import pytest

from newsdesk.client import ApiError, AuthenticationRequired, NewsdeskClient
from newsdesk.models.user import UserRole


@pytest.fixture
def api(test_app):
    """Factory for clients wired straight to the ASGI app."""

    def _api(token=None) -> NewsdeskClient:
        return NewsdeskClient(
            base_url="http://testserver/api",
            token=token,
            transport=httpx.ASGITransport(app=test_app),
        )

    return _api


@pytest.mark.integration
class TestClientAuth:
    @pytest.mark.asyncio
    async def test_register_stores_token(self, api):
        async with api() as client:
            data = await client.register("newbie", "newbie@news.org", "password123", first_name="New")

            assert client.is_authenticated()
            assert client.token == data["token"]
            assert client.get_user_role() == "user"
            assert client.has_role(["user", "editor"])
            assert not client.has_role(["admin"])

            profile = await client.get_profile()
            assert profile["username"] == "newbie"
            assert profile["firstName"] == "New"

    @pytest.mark.asyncio
    async def test_login_and_logout(self, api, editor_user):
        async with api() as client:
            await client.login("EDITOR@news.org", "password123")

            assert client.decode_token()["role"] == UserRole.EDITOR.value

            client.logout()
            assert client.token is None
            assert client.decode_token() is None
            with pytest.raises(AuthenticationRequired):
                await client.get_profile()

    @pytest.mark.asyncio
    async def test_rejected_token_is_cleared(self, api):
        async with api(token="not-a-jwt") as client:
            with pytest.raises(AuthenticationRequired) as exc_info:
                await client.get_profile()

            assert exc_info.value.status_code == 401
            assert client.token is None
            assert not client.is_authenticated()

    @pytest.mark.asyncio
    async def test_wrong_password(self, api, test_user):
        async with api() as client:
            with pytest.raises(AuthenticationRequired):
                await client.login("reporter@news.org", "wrong-password")

            assert client.token is None

    @pytest.mark.asyncio
    async def test_update_profile(self, api, auth_headers):
        token = auth_headers["Authorization"].split()[1]
        async with api(token) as client:
            data = await client.update_profile(bio="Covers city hall")

            assert data["user"]["bio"] == "Covers city hall"


@pytest.mark.integration
class TestClientErrors:
    @pytest.mark.asyncio
    async def test_forbidden_raises_api_error(self, api, auth_headers):
        token = auth_headers["Authorization"].split()[1]
        async with api(token) as client:
            with pytest.raises(ApiError) as exc_info:
                await client.create_category({"name": "Sport", "slug": "sport"})

            assert exc_info.value.status_code == 403
            assert not isinstance(exc_info.value, AuthenticationRequired)
            # a 403 keeps the token
            assert client.token == token

    @pytest.mark.asyncio
    async def test_not_found_message(self, api):
        async with api() as client:
            with pytest.raises(ApiError) as exc_info:
                await client.get_article("missing")

            assert exc_info.value.status_code == 404
            assert exc_info.value.message == "Article not found"
            assert exc_info.value.payload == {"message": "Article not found"}


@pytest.mark.integration
class TestClientEditorFlow:
    @pytest.mark.asyncio
    async def test_publish_and_moderate(self, api, editor_user, test_user, headers_for):
        async with api() as editor:
            await editor.login("editor@news.org", "password123")

            category = (await editor.create_category({"name": "Politics", "slug": "politics"}))["category"]
            article = (
                await editor.create_article(
                    {
                        "title": "Budget passes",
                        "slug": "budget-passes",
                        "content": "The council approved the budget.",
                        "categories": [category["id"]],
                        "tags": ["budget", " council", "budget"],
                        "status": "published",
                    }
                )
            )["article"]

            assert article["status"] == "published"
            assert article["tags"] == ["budget", "council"]

            page = await editor.list_articles(tag="budget", category=category["id"])
            assert [a["slug"] for a in page["items"]] == ["budget-passes"]

            reader_token = headers_for(test_user)["Authorization"].split()[1]
            async with api(reader_token) as reader:
                pending = (await reader.add_comment(article["id"], "Long overdue"))["comment"]
                assert pending["approved"] is False

            assert (await editor.get_comments(article["id"]))["items"] == []

            await editor.moderate_comment(pending["id"], True)
            threads = await editor.get_comments(article["id"])
            assert [c["id"] for c in threads["items"]] == [pending["id"]]

            detail = await editor.get_article("budget-passes")
            assert detail["viewCount"] == 1

            await editor.delete_article(article["id"])
            assert (await editor.list_articles())["totalArticles"] == 0

    @pytest.mark.asyncio
    async def test_categories(self, api, test_category):
        async with api() as client:
            categories = await client.get_categories()
            category = await client.get_category("technology")

            assert [c["slug"] for c in categories] == ["technology"]
            assert category["id"] == test_category.id


@pytest.mark.integration
class TestClientMedia:
    @pytest.mark.asyncio
    async def test_upload_list_delete(self, api, auth_headers):
        token = auth_headers["Authorization"].split()[1]
        async with api(token) as client:
            uploaded = await client.upload_media(
                io.BytesIO(b"%PDF-1.4 minutes"), "minutes.pdf", "application/pdf", name="Minutes"
            )
            media = uploaded["media"]

            assert media["name"] == "Minutes"
            assert (await client.list_media())["totalMedia"] == 1

            await client.delete_media(media["id"])
            assert (await client.list_media())["items"] == []

    @pytest.mark.asyncio
    async def test_upload_avatar(self, api, auth_headers):
        token = auth_headers["Authorization"].split()[1]
        async with api(token) as client:
            data = await client.upload_avatar(io.BytesIO(b"\x89PNG\r\n\x1a\n0000"), "me.png")

            assert data["avatar"].startswith("/uploads/")
            assert (await client.get_profile())["avatar"] == data["avatar"]
