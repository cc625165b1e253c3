"""Tests for articles API endpoints."""

import pytest
from datetime import datetime
from newsdesk.models.article import Article, ArticleStatus
from newsdesk.models.comment import Comment


@pytest.mark.integration
class TestArticleListing:
    """Test GET /api/articles."""

    def test_get_articles_list(self, client, test_article, draft_article):
        """Test that anonymous readers only see published articles."""
        response = client.get("/api/articles")

        assert response.status_code == 200
        data = response.json()
        assert [a["slug"] for a in data["items"]] == ["test-article"]
        assert data["page"] == 1
        assert data["limit"] == 10
        assert data["totalPages"] == 1
        assert data["totalArticles"] == 1

    def test_article_shape(self, client, test_article, test_user, test_category):
        item = client.get("/api/articles").json()["items"][0]

        assert item["author"]["id"] == test_user.id
        assert item["author"]["username"] == "reporter"
        assert "email" not in item["author"]
        assert item["categories"] == [
            {"id": test_category.id, "name": "Technology", "slug": "technology"}
        ]
        assert sorted(item["tags"]) == ["science", "space"]
        assert item["status"] == "published"
        assert item["viewCount"] == 0
        assert item["isBreakingNews"] is False

    def test_pagination(self, client, make_article, test_user):
        for i in range(5):
            make_article(test_user, f"article-{i}")

        response = client.get("/api/articles", params={"page": 2, "limit": 2})

        data = response.json()
        assert len(data["items"]) == 2
        assert data["page"] == 2
        assert data["totalPages"] == 3
        assert data["totalArticles"] == 5

    def test_invalid_pagination(self, client):
        assert client.get("/api/articles", params={"page": 0}).status_code == 400
        assert client.get("/api/articles", params={"limit": 1000}).status_code == 400

    def test_filter_by_category(self, client, test_article, make_article, test_user, test_category):
        make_article(test_user, "uncategorized")

        response = client.get("/api/articles", params={"category": test_category.id})

        assert [a["slug"] for a in response.json()["items"]] == ["test-article"]

    def test_filter_by_tag(self, client, test_article, make_article, test_user):
        make_article(test_user, "sports-story", tags=["football"])

        response = client.get("/api/articles", params={"tag": "football"})

        assert [a["slug"] for a in response.json()["items"]] == ["sports-story"]

    def test_filter_by_author(self, client, test_article, make_article, other_user):
        make_article(other_user, "other-story")

        response = client.get("/api/articles", params={"author": other_user.id})

        assert [a["slug"] for a in response.json()["items"]] == ["other-story"]

    def test_search_is_case_insensitive(self, client, make_article, test_user):
        make_article(test_user, "budget", title="Council passes BUDGET")
        make_article(test_user, "weather", title="Sunny week", summary="budget-friendly picnic spots")
        make_article(test_user, "unrelated", title="Nothing to see")

        response = client.get("/api/articles", params={"search": "budget"})

        assert sorted(a["slug"] for a in response.json()["items"]) == ["budget", "weather"]

    def test_sort_by_title(self, client, make_article, test_user):
        make_article(test_user, "b", title="Bravo")
        make_article(test_user, "a", title="Alpha")
        make_article(test_user, "c", title="Charlie")

        response = client.get(
            "/api/articles", params={"sortBy": "title", "sortOrder": "asc"}
        )

        assert [a["title"] for a in response.json()["items"]] == ["Alpha", "Bravo", "Charlie"]

    def test_invalid_sort(self, client):
        assert client.get("/api/articles", params={"sortBy": "password"}).status_code == 400
        assert client.get("/api/articles", params={"sortOrder": "sideways"}).status_code == 400

    def test_drafts_require_token(self, client, draft_article):
        response = client.get("/api/articles", params={"status": "draft"})

        assert response.status_code == 401

    def test_user_sees_only_own_drafts(
        self, client, draft_article, make_article, other_user, auth_headers
    ):
        make_article(other_user, "someone-elses-draft", status=ArticleStatus.DRAFT)

        response = client.get(
            "/api/articles", params={"status": "draft"}, headers=auth_headers
        )

        assert [a["slug"] for a in response.json()["items"]] == ["draft-article"]

    def test_editor_sees_all_drafts(
        self, client, draft_article, make_article, other_user, editor_headers
    ):
        make_article(other_user, "someone-elses-draft", status=ArticleStatus.DRAFT)

        response = client.get(
            "/api/articles", params={"status": "draft"}, headers=editor_headers
        )

        assert response.json()["totalArticles"] == 2


@pytest.mark.integration
class TestArticleDetail:
    """Test GET /api/articles/{slug}."""

    def test_get_article(self, client, test_article):
        response = client.get("/api/articles/test-article")

        assert response.status_code == 200
        assert response.json()["id"] == test_article.id

    def test_view_count_increments_per_read(self, client, test_article):
        """Test that two reads raise the view count by exactly two."""
        first = client.get("/api/articles/test-article").json()["viewCount"]
        second = client.get("/api/articles/test-article").json()["viewCount"]

        assert first == 1
        assert second == 2

    def test_listing_does_not_count_views(self, client, test_article):
        client.get("/api/articles")

        assert client.get("/api/articles/test-article").json()["viewCount"] == 1

    def test_reads_do_not_touch_updated_at(self, client, test_article):
        first = client.get("/api/articles/test-article").json()
        second = client.get("/api/articles/test-article").json()

        assert second["viewCount"] == first["viewCount"] + 1
        assert second["updatedAt"] == first["updatedAt"]

    def test_reads_do_not_reorder_by_updated_at(self, client, make_article, test_user):
        make_article(test_user, "edited-first")
        make_article(test_user, "edited-last")
        client.get("/api/articles/edited-first")
        client.get("/api/articles/edited-first")

        items = client.get("/api/articles", params={"sortBy": "updatedAt"}).json()["items"]

        assert [a["slug"] for a in items] == ["edited-last", "edited-first"]

    def test_unknown_slug(self, client):
        response = client.get("/api/articles/no-such-article")

        assert response.status_code == 404
        assert response.json()["message"] == "Article not found"

    def test_draft_hidden_from_public(self, client, draft_article, other_headers):
        assert client.get("/api/articles/draft-article").status_code == 404
        assert (
            client.get("/api/articles/draft-article", headers=other_headers).status_code
            == 404
        )

    def test_draft_visible_to_owner_and_editor(
        self, client, draft_article, auth_headers, editor_headers
    ):
        assert client.get("/api/articles/draft-article", headers=auth_headers).status_code == 200
        assert client.get("/api/articles/draft-article", headers=editor_headers).status_code == 200


@pytest.mark.integration
class TestArticleCreate:
    """Test POST /api/articles."""

    def payload(self, **overrides):
        data = {
            "title": "Fresh Story",
            "slug": "fresh-story",
            "content": "Body text",
            "summary": "Short",
            "tags": ["local", "  local ", "city"],
        }
        data.update(overrides)
        return data

    def test_requires_token(self, client):
        response = client.post("/api/articles", json=self.payload())

        assert response.status_code == 401

    def test_user_create_is_forced_to_draft(self, client, auth_headers, test_user):
        """Test that publishing fields are overridden for the user role."""
        response = client.post(
            "/api/articles",
            headers=auth_headers,
            json=self.payload(
                status="published",
                isBreakingNews=True,
                isFeatured=True,
                publishDate="2001-01-01T00:00:00Z",
            ),
        )

        assert response.status_code == 201
        article = response.json()["article"]
        assert article["status"] == "draft"
        assert article["isBreakingNews"] is False
        assert article["isFeatured"] is False
        assert not article["publishDate"].startswith("2001")
        assert article["author"]["id"] == test_user.id

    def test_editor_create_keeps_publishing_fields(self, client, editor_headers):
        response = client.post(
            "/api/articles",
            headers=editor_headers,
            json=self.payload(
                status="published",
                isBreakingNews=True,
                isFeatured=True,
                publishDate="2001-01-01T00:00:00Z",
            ),
        )

        assert response.status_code == 201
        article = response.json()["article"]
        assert article["status"] == "published"
        assert article["isBreakingNews"] is True
        assert article["isFeatured"] is True
        assert article["publishDate"].startswith("2001-01-01")

    def test_editor_create_defaults(self, client, editor_headers):
        article = client.post(
            "/api/articles", headers=editor_headers, json=self.payload()
        ).json()["article"]

        assert article["status"] == "draft"
        assert article["publishDate"] is not None

    def test_tags_are_normalized(self, client, auth_headers):
        article = client.post(
            "/api/articles", headers=auth_headers, json=self.payload()
        ).json()["article"]

        assert sorted(article["tags"]) == ["city", "local"]

    def test_categories(self, client, auth_headers, test_category):
        response = client.post(
            "/api/articles",
            headers=auth_headers,
            json=self.payload(categories=[test_category.id]),
        )

        assert response.json()["article"]["categories"][0]["slug"] == "technology"

    def test_unknown_category(self, client, auth_headers):
        response = client.post(
            "/api/articles",
            headers=auth_headers,
            json=self.payload(categories=["no-such-category"]),
        )

        assert response.status_code == 400

    def test_duplicate_slug(self, client, auth_headers, test_article):
        response = client.post(
            "/api/articles", headers=auth_headers, json=self.payload(slug="test-article")
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Article with this slug already exists"

    def test_missing_title(self, client, auth_headers):
        payload = self.payload()
        del payload["title"]

        response = client.post("/api/articles", headers=auth_headers, json=payload)

        assert response.status_code == 400


@pytest.mark.integration
class TestArticleUpdate:
    """Test PUT /api/articles/{id}."""

    def test_owner_can_edit_body(self, client, test_article, auth_headers):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=auth_headers,
            json={"title": "Edited", "content": "New body"},
        )

        assert response.status_code == 200
        article = response.json()["article"]
        assert article["title"] == "Edited"
        assert article["content"] == "New body"
        assert article["summary"] == "Test summary"

    def test_other_user_is_forbidden(self, client, test_article, other_headers):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=other_headers,
            json={"title": "Hijacked"},
        )

        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to edit this article"

    def test_editor_can_edit_any_article(self, client, test_article, editor_headers):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=editor_headers,
            json={"isFeatured": True, "status": "archived"},
        )

        assert response.status_code == 200
        article = response.json()["article"]
        assert article["isFeatured"] is True
        assert article["status"] == "archived"

    def test_editor_null_publish_date_keeps_date(self, client, test_article, editor_headers):
        before = client.get("/api/articles/test-article").json()["publishDate"]

        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=editor_headers,
            json={"publishDate": None, "isFeatured": None},
        )

        article = response.json()["article"]
        assert article["publishDate"] == before
        assert article["isFeatured"] is False

    def test_editor_sets_publish_date(self, client, test_article, editor_headers):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=editor_headers,
            json={"publishDate": "2030-05-01T08:00:00Z"},
        )

        assert response.json()["article"]["publishDate"].startswith("2030-05-01")

    def test_edit_advances_updated_at(self, client, test_article, auth_headers):
        before = client.get("/api/articles/test-article").json()["updatedAt"]

        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=auth_headers,
            json={"tags": ["science"]},
        )

        after = response.json()["article"]["updatedAt"]
        assert datetime.fromisoformat(after) > datetime.fromisoformat(before)

    def test_unknown_article(self, client, auth_headers):
        response = client.put(
            "/api/articles/does-not-exist", headers=auth_headers, json={"title": "x"}
        )

        assert response.status_code == 404

    def test_user_cannot_publish_own_draft(self, client, draft_article, auth_headers):
        response = client.put(
            f"/api/articles/{draft_article.id}",
            headers=auth_headers,
            json={"status": "published"},
        )

        assert response.status_code == 200
        assert response.json()["article"]["status"] == "draft"

    def test_user_can_change_status_of_published_article(
        self, client, test_article, auth_headers
    ):
        """Test that a published article takes whatever status a user submits."""
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=auth_headers,
            json={"status": "archived"},
        )

        assert response.json()["article"]["status"] == "archived"

    def test_user_can_unpublish_to_draft(self, client, test_article, auth_headers):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=auth_headers,
            json={"status": "draft"},
        )

        assert response.json()["article"]["status"] == "draft"

    def test_user_cannot_change_archived_status(
        self, client, make_article, test_user, auth_headers
    ):
        archived = make_article(test_user, "old-news", status=ArticleStatus.ARCHIVED)

        response = client.put(
            f"/api/articles/{archived.id}",
            headers=auth_headers,
            json={"status": "published"},
        )

        assert response.json()["article"]["status"] == "archived"

    def test_user_update_ignores_promotion_flags(self, client, test_article, auth_headers):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=auth_headers,
            json={"isBreakingNews": True, "isFeatured": True},
        )

        article = response.json()["article"]
        assert article["isBreakingNews"] is False
        assert article["isFeatured"] is False

    def test_replace_tags(self, client, test_article, auth_headers):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=auth_headers,
            json={"tags": ["space", "rockets"]},
        )

        assert response.status_code == 200
        assert sorted(response.json()["article"]["tags"]) == ["rockets", "space"]

    def test_clear_categories(self, client, test_article, auth_headers):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=auth_headers,
            json={"categories": []},
        )

        assert response.json()["article"]["categories"] == []

    def test_author_is_immutable(self, client, test_article, auth_headers, other_user, test_user):
        response = client.put(
            f"/api/articles/{test_article.id}",
            headers=auth_headers,
            json={"author": other_user.id, "authorId": other_user.id},
        )

        assert response.json()["article"]["author"]["id"] == test_user.id


@pytest.mark.integration
class TestArticleDelete:
    """Test DELETE /api/articles/{id}."""

    def test_delete_cascades_to_comments(
        self, client, db_session, test_article, auth_headers, make_comment, other_user
    ):
        """Test that deleting an article leaves none of its comments behind."""
        top = make_comment(test_article, other_user, "first")
        make_comment(test_article, other_user, "reply", parent_comment_id=top.id)
        make_comment(test_article, other_user, "unapproved", approved=False)

        response = client.delete(f"/api/articles/{test_article.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Article deleted successfully"
        assert db_session.query(Article).filter(Article.slug == "test-article").first() is None
        assert db_session.query(Comment).count() == 0

    def test_delete_keeps_other_articles_comments(
        self, client, db_session, test_article, make_article, test_user, auth_headers, make_comment
    ):
        other_article = make_article(test_user, "another-article")
        make_comment(test_article, test_user)
        kept = make_comment(other_article, test_user)

        client.delete(f"/api/articles/{test_article.id}", headers=auth_headers)

        assert [c.id for c in db_session.query(Comment).all()] == [kept.id]

    def test_other_user_cannot_delete(self, client, test_article, other_headers):
        response = client.delete(f"/api/articles/{test_article.id}", headers=other_headers)

        assert response.status_code == 403

    def test_editor_can_delete(self, client, test_article, editor_headers):
        response = client.delete(f"/api/articles/{test_article.id}", headers=editor_headers)

        assert response.status_code == 200
        assert client.get("/api/articles/test-article").status_code == 404

    def test_delete_requires_token(self, client, test_article):
        assert client.delete(f"/api/articles/{test_article.id}").status_code == 401
