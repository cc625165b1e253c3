"""
Pytest configuration and fixtures for Newsdesk tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

import newsdesk.models  # noqa: F401
from newsdesk.core.auth import TokenService
from newsdesk.core.config import Settings
from newsdesk.core.database import Base, get_db
from newsdesk.main import create_app
from newsdesk.models.article import Article, ArticleStatus
from newsdesk.models.category import Category
from newsdesk.models.comment import Comment
from newsdesk.models.user import User, UserRole
from newsdesk.services.user_service import UserService

# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PASSWORD = "password123"


@pytest.fixture(scope="function")
def test_settings(tmp_path) -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        DATABASE_URL=TEST_DATABASE_URL,
        SECRET_KEY="test_secret_key_for_testing_only",
        PASSWORD_HASH_ROUNDS=4,
        RATE_LIMIT_ENABLED=False,
        MEDIA_ROOT=str(tmp_path / "uploads"),
        DEBUG=True,
    )


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def test_app(test_settings, db_engine, db_session):
    """Create the application on the test engine, without lifespan events."""
    app = create_app(test_settings, engine=db_engine)

    # Override database dependency
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    return app


@pytest.fixture(scope="function")
def client(test_app) -> TestClient:
    """Create a test client without entering context manager."""
    return TestClient(test_app, raise_server_exceptions=False)


@pytest.fixture(scope="function")
def token_service(test_app) -> TokenService:
    return test_app.state.token_service


@pytest.fixture(scope="function")
def make_user(db_session):
    """Factory for users with a known password."""
    users = UserService(db_session, password_rounds=4)

    def _make_user(username: str, role: UserRole = UserRole.USER, **kwargs) -> User:
        return users.create_user(
            username=username,
            email=kwargs.pop("email", f"{username}@news.org"),
            password=kwargs.pop("password", TEST_PASSWORD),
            role=role,
            **kwargs,
        )

    return _make_user


@pytest.fixture(scope="function")
def headers_for(token_service):
    """Build Authorization headers for a user."""

    def _headers_for(user: User) -> dict:
        token = token_service.issue(UserService.identity_for(user))
        return {"Authorization": f"Bearer {token}"}

    return _headers_for


@pytest.fixture(scope="function")
def test_user(make_user) -> User:
    return make_user("reporter", first_name="Rita", last_name="Reporter")


@pytest.fixture(scope="function")
def other_user(make_user) -> User:
    return make_user("bystander")


@pytest.fixture(scope="function")
def editor_user(make_user) -> User:
    return make_user("editor", role=UserRole.EDITOR)


@pytest.fixture(scope="function")
def admin_user(make_user) -> User:
    return make_user("admin", role=UserRole.ADMIN)


@pytest.fixture(scope="function")
def auth_headers(test_user, headers_for) -> dict:
    """Create authentication headers for the regular test user."""
    return headers_for(test_user)


@pytest.fixture(scope="function")
def other_headers(other_user, headers_for) -> dict:
    return headers_for(other_user)


@pytest.fixture(scope="function")
def editor_headers(editor_user, headers_for) -> dict:
    return headers_for(editor_user)


@pytest.fixture(scope="function")
def admin_headers(admin_user, headers_for) -> dict:
    return headers_for(admin_user)


@pytest.fixture(scope="function")
def test_category(db_session) -> Category:
    """Create a test category."""
    category = Category(
        name="Technology",
        slug="technology",
        description="Tech news and updates",
        active=True,
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture(scope="function")
def make_article(db_session):
    """Factory for articles written straight to the database."""

    def _make_article(author: User, slug: str, **kwargs) -> Article:
        categories = kwargs.pop("categories", [])
        tags = kwargs.pop("tags", [])
        article = Article(
            title=kwargs.pop("title", slug.replace("-", " ").title()),
            slug=slug,
            content=kwargs.pop("content", f"Content of {slug}"),
            summary=kwargs.pop("summary", None),
            author_id=author.id,
            status=kwargs.pop("status", ArticleStatus.PUBLISHED),
            publish_date=datetime.now(timezone.utc),
            **kwargs,
        )
        article.categories = categories
        for tag in tags:
            article.tags.append(tag)
        db_session.add(article)
        db_session.commit()
        db_session.refresh(article)
        return article

    return _make_article


@pytest.fixture(scope="function")
def test_article(make_article, test_user, test_category) -> Article:
    """Create a published test article owned by test_user."""
    return make_article(
        test_user,
        "test-article",
        title="Test Article",
        summary="Test summary",
        categories=[test_category],
        tags=["science", "space"],
    )


@pytest.fixture(scope="function")
def draft_article(make_article, test_user) -> Article:
    return make_article(test_user, "draft-article", status=ArticleStatus.DRAFT)


@pytest.fixture(scope="function")
def make_comment(db_session):
    """Factory for comments with increasing creation times."""
    base_time = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make_comment(article: Article, author: User, content: str = "A comment", **kwargs) -> Comment:
        counter["n"] += 1
        comment = Comment(
            article_id=article.id,
            author_id=author.id,
            content=content,
            approved=kwargs.pop("approved", True),
            created_at=base_time + timedelta(minutes=counter["n"]),
            **kwargs,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make_comment
