"""
Async client for the Newsdesk API.

Holds the bearer token between calls, attaches it to every request and
forgets it as soon as the server answers 401.

Example:
    async with NewsdeskClient("http://localhost:8000/api") as api:
        await api.login("editor@news.org", "secret")
        page = await api.list_articles(tag="politics", limit=5)
"""

import logging
from typing import Any, BinaryIO, Dict, Iterable, List, Optional, Union

import httpx
from jose import jwt, JWTError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, payload: Optional[dict] = None):
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}
        super().__init__(f"{status_code}: {message}")


class AuthenticationRequired(ApiError):
    """The server rejected the token, or the call needs one and none was set."""

    def __init__(self, message: str = "Authentication required", payload: Optional[dict] = None):
        super().__init__(401, message, payload)


def _query(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


class NewsdeskClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token = token
        self._http = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "NewsdeskClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # Token handling

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear_token(self) -> None:
        self._token = None

    def is_authenticated(self) -> bool:
        return bool(self._token)

    def decode_token(self) -> Optional[dict]:
        """Read the token's claims without verifying the signature."""
        if not self._token:
            return None
        try:
            return jwt.get_unverified_claims(self._token)
        except JWTError as e:
            logger.warning(f"Could not decode stored token: {e}")
            return None

    def get_user_role(self) -> Optional[str]:
        claims = self.decode_token()
        return claims.get("role") if claims else None

    def has_role(self, roles: Iterable[str]) -> bool:
        role = self.get_user_role()
        return role is not None and role in set(roles)

    # Transport

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Optional[dict] = None,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Union[dict, list, str]:
        """
        Send a request and return the decoded body.

        Raises:
            AuthenticationRequired: On a 401 response; the stored token is cleared
            ApiError: On any other non-2xx response
        """
        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        response = await self._http.request(
            method,
            endpoint,
            json=json,
            params=_query(params or {}),
            data=data,
            files=files,
            headers=headers,
        )

        body = self._decode(response)

        if response.status_code == 401:
            self.clear_token()
            message = body.get("message") if isinstance(body, dict) else None
            raise AuthenticationRequired(
                message or "Authentication required",
                body if isinstance(body, dict) else None,
            )

        if response.is_error:
            message = None
            if isinstance(body, dict):
                message = body.get("message")
            logger.warning(f"{method} {endpoint} failed with {response.status_code}: {message}")
            raise ApiError(
                response.status_code,
                message or "Request to the API failed",
                body if isinstance(body, dict) else None,
            )

        return body

    @staticmethod
    def _decode(response: httpx.Response) -> Union[dict, list, str]:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text

    # Auth

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> dict:
        data = await self.request(
            "POST",
            "/auth/register",
            json=_query(
                {
                    "username": username,
                    "email": email,
                    "password": password,
                    "firstName": first_name,
                    "lastName": last_name,
                }
            ),
        )
        if data.get("token"):
            self.set_token(data["token"])
        return data

    async def login(self, email: str, password: str) -> dict:
        data = await self.request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        if data.get("token"):
            self.set_token(data["token"])
        return data

    def logout(self) -> None:
        """Tokens are not revoked server-side; logging out just forgets it."""
        self.clear_token()

    async def get_profile(self) -> dict:
        return await self.request("GET", "/auth/me")

    async def update_profile(self, **fields) -> dict:
        """Update ``firstName``, ``lastName`` or ``bio``."""
        return await self.request("PUT", "/auth/profile", json=fields)

    async def change_password(self, current_password: str, new_password: str) -> dict:
        return await self.request(
            "PUT",
            "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    async def upload_avatar(
        self, file: BinaryIO, filename: str, content_type: str = "image/png"
    ) -> dict:
        return await self.request(
            "POST", "/auth/avatar", files={"file": (filename, file, content_type)}
        )

    # Articles

    async def list_articles(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        category: Optional[str] = None,
        author: Optional[str] = None,
        tag: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> dict:
        return await self.request(
            "GET",
            "/articles",
            params={
                "page": page,
                "limit": limit,
                "category": category,
                "author": author,
                "tag": tag,
                "status": status,
                "search": search,
                "sortBy": sort_by,
                "sortOrder": sort_order,
            },
        )

    async def get_article(self, slug: str) -> dict:
        return await self.request("GET", f"/articles/{slug}")

    async def create_article(self, article: dict) -> dict:
        return await self.request("POST", "/articles", json=article)

    async def update_article(self, article_id: str, changes: dict) -> dict:
        return await self.request("PUT", f"/articles/{article_id}", json=changes)

    async def delete_article(self, article_id: str) -> dict:
        return await self.request("DELETE", f"/articles/{article_id}")

    # Comments

    async def get_comments(
        self, article_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> dict:
        return await self.request(
            "GET",
            f"/articles/{article_id}/comments",
            params={"page": page, "limit": limit},
        )

    async def add_comment(
        self, article_id: str, content: str, parent_comment: Optional[str] = None
    ) -> dict:
        return await self.request(
            "POST",
            f"/articles/{article_id}/comments",
            json=_query({"content": content, "parentComment": parent_comment}),
        )

    async def moderate_comment(self, comment_id: str, approved: bool) -> dict:
        return await self.request(
            "PUT", f"/comments/{comment_id}/moderate", json={"approved": approved}
        )

    async def delete_comment(self, comment_id: str) -> dict:
        return await self.request("DELETE", f"/comments/{comment_id}")

    # Categories

    async def get_categories(self) -> List[dict]:
        return await self.request("GET", "/categories")

    async def get_category(self, slug: str) -> dict:
        return await self.request("GET", f"/categories/{slug}")

    async def create_category(self, category: dict) -> dict:
        return await self.request("POST", "/categories", json=category)

    async def update_category(self, category_id: str, changes: dict) -> dict:
        return await self.request("PUT", f"/categories/{category_id}", json=changes)

    async def delete_category(self, category_id: str) -> dict:
        return await self.request("DELETE", f"/categories/{category_id}")

    # Media

    async def upload_media(
        self,
        file: BinaryIO,
        filename: str,
        content_type: str,
        name: Optional[str] = None,
    ) -> dict:
        return await self.request(
            "POST",
            "/media/upload",
            files={"file": (filename, file, content_type)},
            data=_query({"name": name}),
        )

    async def list_media(
        self, page: Optional[int] = None, limit: Optional[int] = None
    ) -> dict:
        return await self.request("GET", "/media", params={"page": page, "limit": limit})

    async def delete_media(self, media_id: str) -> dict:
        return await self.request("DELETE", f"/media/{media_id}")
