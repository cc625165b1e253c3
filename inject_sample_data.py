#!/usr/bin/env python3
"""
Script to inject sample accounts, categories and articles into the database.

Creates the tables if needed, then an admin, an editor and a regular user
plus a few categories and articles. Accounts that already exist are left
untouched. This script is also the only way to change a user's role.

Usage:
    python3 inject_sample_data.py
    python3 inject_sample_data.py promote <email> <user|editor|admin>

Reads the same environment / .env settings as the API. Sample accounts get
the password from SEED_PASSWORD (default: change-me-now).
"""

import os
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent / "backend"))

import newsdesk.models  # noqa: F401
from newsdesk.core.access import AccessPolicy
from newsdesk.core.config import Settings
from newsdesk.core.database import Base, build_engine, build_session_factory
from newsdesk.models.article import Article, ArticleStatus
from newsdesk.models.category import Category
from newsdesk.models.user import UserRole
from newsdesk.schemas.article import ArticleCreate
from newsdesk.schemas.category import CategoryCreate
from newsdesk.services.article_service import ArticleService
from newsdesk.services.category_service import CategoryService
from newsdesk.services.user_service import UserService

SAMPLE_USERS = [
    {"username": "admin", "email": "admin@newsdesk.org", "role": UserRole.ADMIN},
    {"username": "editor", "email": "editor@newsdesk.org", "role": UserRole.EDITOR},
    {"username": "reader", "email": "reader@newsdesk.org", "role": UserRole.USER},
]

SAMPLE_CATEGORIES = [
    {"name": "Politics", "slug": "politics", "description": "Government and elections"},
    {"name": "Technology", "slug": "technology", "description": "Software, hardware and science"},
    {"name": "Sports", "slug": "sports", "description": "Results and analysis"},
]

SAMPLE_ARTICLES = [
    {
        "title": "City council approves new transit plan",
        "slug": "city-council-approves-new-transit-plan",
        "summary": "Three new tram lines by 2030.",
        "content": "The city council voted on Tuesday to approve the long-debated transit plan.",
        "categories": ["politics"],
        "tags": ["transit", "council"],
        "is_breaking_news": True,
    },
    {
        "title": "Local startup ships open-source weather station",
        "slug": "local-startup-ships-open-source-weather-station",
        "summary": "Hardware and firmware are published under a permissive license.",
        "content": "A small team from the university incubator released its first product.",
        "categories": ["technology"],
        "tags": ["open-source", "hardware"],
        "is_featured": True,
    },
]


def seed(settings: Settings) -> None:
    """Create tables and insert the sample data."""
    engine = build_engine(settings.SQLALCHEMY_DATABASE_URI)
    Base.metadata.create_all(bind=engine)
    db = build_session_factory(engine)()
    password = os.getenv("SEED_PASSWORD", "change-me-now")

    try:
        users = UserService(db, password_rounds=settings.PASSWORD_HASH_ROUNDS)
        identities = {}
        for sample in SAMPLE_USERS:
            user = users.find_by_email(sample["email"])
            if user:
                print(f"⊘ Skipped user {sample['email']} (already exists)")
            else:
                user = users.create_user(
                    username=sample["username"],
                    email=sample["email"],
                    password=password,
                    role=sample["role"],
                )
                print(f"✓ Added {sample['role'].value}: {user.email}")
            identities[sample["role"]] = users.identity_for(user)

        editor = identities[UserRole.EDITOR]
        policy = AccessPolicy()

        categories = CategoryService(db, policy)
        category_ids = {}
        for sample in SAMPLE_CATEGORIES:
            category = db.query(Category).filter(Category.slug == sample["slug"]).first()
            if category:
                print(f"⊘ Skipped category {sample['slug']} (already exists)")
            else:
                category = categories.create(editor, CategoryCreate(**sample))
                print(f"✓ Added category: {category.name}")
            category_ids[sample["slug"]] = category.id

        articles = ArticleService(db, policy)
        for sample in SAMPLE_ARTICLES:
            if db.query(Article).filter(Article.slug == sample["slug"]).first():
                print(f"⊘ Skipped article {sample['slug']} (already exists)")
                continue
            data = dict(sample, categories=[category_ids[s] for s in sample["categories"]])
            article = articles.create(
                editor, ArticleCreate(status=ArticleStatus.PUBLISHED, **data)
            )
            print(f"✓ Added article: {article.title}")

    except Exception as e:
        print(f"❌ Error: {e}")
        db.rollback()
        raise

    finally:
        db.close()
        engine.dispose()


def promote(settings: Settings, email: str, role: str) -> None:
    """Set the role of an existing account."""
    engine = build_engine(settings.SQLALCHEMY_DATABASE_URI)
    db = build_session_factory(engine)()
    try:
        user = UserService(db).find_by_email(email)
        if user is None:
            print(f"❌ No user with email {email}")
            sys.exit(1)
        user.role = UserRole(role)
        db.commit()
        print(f"✓ {user.email} is now {user.role.value}")
        print("  Tokens issued before this change keep the old role until they expire.")
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    settings = Settings()

    if len(sys.argv) == 4 and sys.argv[1] == "promote":
        if sys.argv[3] not in [r.value for r in UserRole]:
            print(f"❌ Unknown role: {sys.argv[3]}")
            sys.exit(1)
        promote(settings, sys.argv[2], sys.argv[3])
        sys.exit(0)

    print("=" * 60)
    print("  Newsdesk Sample Data Injection Script")
    print("=" * 60)
    print()

    seed(settings)

    print()
    print("Next steps:")
    print("1. Start the API: uvicorn newsdesk.main:create_app --factory --app-dir backend")
    print("2. Log in as editor@newsdesk.org with SEED_PASSWORD")
