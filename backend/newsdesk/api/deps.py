"""Request-scoped service construction for the route handlers."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from newsdesk.core.access import AccessPolicy, get_access_policy
from newsdesk.core.database import get_db
from newsdesk.services.article_service import ArticleService
from newsdesk.services.category_service import CategoryService
from newsdesk.services.comment_service import CommentService
from newsdesk.services.file_storage import FileStorage, get_file_storage
from newsdesk.services.media_service import MediaService
from newsdesk.services.user_service import UserService


def get_user_service(request: Request, db: Session = Depends(get_db)) -> UserService:
    return UserService(db, password_rounds=request.app.state.settings.PASSWORD_HASH_ROUNDS)


def get_article_service(
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
) -> ArticleService:
    return ArticleService(db, policy)


def get_comment_service(
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
) -> CommentService:
    return CommentService(db, policy)


def get_category_service(
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
) -> CategoryService:
    return CategoryService(db, policy)


def get_media_service(
    db: Session = Depends(get_db),
    policy: AccessPolicy = Depends(get_access_policy),
    storage: FileStorage = Depends(get_file_storage),
) -> MediaService:
    return MediaService(db, policy, storage)
