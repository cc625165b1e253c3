from newsdesk.schemas.base import APIModel, MessageResponse
from newsdesk.schemas.user import (
    RegisterRequest,
    LoginRequest,
    ProfileUpdate,
    PasswordChange,
    UserSummary,
    UserProfile,
    AuthResponse,
    ProfileResponse,
    AvatarResponse,
)
from newsdesk.schemas.category import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    CategorySummary,
    CategoryResponse,
)
from newsdesk.schemas.article import (
    Article,
    ArticleCreate,
    ArticleUpdate,
    ArticleResponse,
    ArticlePage,
)
from newsdesk.schemas.comment import (
    Comment,
    CommentCreate,
    CommentModerate,
    CommentThread,
    CommentResponse,
    CommentPage,
)
from newsdesk.schemas.media import Media, MediaResponse, MediaPage

__all__ = [
    "APIModel",
    "MessageResponse",
    "RegisterRequest",
    "LoginRequest",
    "ProfileUpdate",
    "PasswordChange",
    "UserSummary",
    "UserProfile",
    "AuthResponse",
    "ProfileResponse",
    "AvatarResponse",
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "CategorySummary",
    "CategoryResponse",
    "Article",
    "ArticleCreate",
    "ArticleUpdate",
    "ArticleResponse",
    "ArticlePage",
    "Comment",
    "CommentCreate",
    "CommentModerate",
    "CommentThread",
    "CommentResponse",
    "CommentPage",
    "Media",
    "MediaResponse",
    "MediaPage",
]
