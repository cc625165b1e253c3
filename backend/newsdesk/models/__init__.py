from .user import User, UserRole
from .category import Category
from .article import Article, ArticleStatus, ArticleTag, article_categories
from .comment import Comment
from .media import Media

__all__ = [
    "User",
    "UserRole",
    "Category",
    "Article",
    "ArticleStatus",
    "ArticleTag",
    "article_categories",
    "Comment",
    "Media",
]
