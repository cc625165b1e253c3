from dataclasses import dataclass
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from typing import Optional
from datetime import datetime, timedelta, timezone
import logging
import uuid

from newsdesk.core.errors import InvalidToken, TokenExpired, Unauthorized
from newsdesk.models.user import UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

DEFAULT_ALGORITHM = "HS256"
DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


@dataclass(frozen=True)
class Identity:
    """Claims carried by a verified bearer token."""

    id: str
    username: str
    role: UserRole


class TokenService:
    """
    Issues and verifies signed, time-limited bearer tokens.

    Verification is a pure function of the token, the secret and the clock.
    It never looks the user up, so claims stay valid until the token expires
    even if the account is later deactivated or its role changes.
    """

    def __init__(
        self,
        secret_key: str,
        lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        algorithm: str = DEFAULT_ALGORITHM,
    ):
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key")
        self.secret_key = secret_key
        self.lifetime = lifetime
        self.algorithm = algorithm

    def issue(self, identity: Identity, lifetime: Optional[timedelta] = None) -> str:
        """
        Create a signed access token for ``identity``.

        Args:
            identity: The user claims to embed
            lifetime: Optional override of the configured lifetime

        Returns:
            Encoded JWT token
        """
        issued_at = datetime.now(timezone.utc)
        expire = issued_at + (lifetime if lifetime is not None else self.lifetime)

        claims = {
            "sub": str(identity.id),
            "id": str(identity.id),
            "username": identity.username,
            "role": UserRole(identity.role).value,
            "iat": issued_at,
            "exp": expire,
            "jti": str(uuid.uuid4()),  # JWT ID for tracking
            "type": "access",
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Identity:
        """
        Decode and validate a token.

        Raises:
            TokenExpired: If the token is past its expiry
            InvalidToken: If the signature or claims cannot be validated
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.warning("Token expired")
            raise TokenExpired()
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            raise InvalidToken()

        if payload.get("type") != "access":
            logger.warning(f"Token type mismatch: got {payload.get('type')}")
            raise InvalidToken("Invalid token type")

        user_id = payload.get("id")
        username = payload.get("username")
        if not user_id or not username:
            raise InvalidToken()

        try:
            role = UserRole(payload.get("role"))
        except ValueError:
            raise InvalidToken("Invalid role in token")

        return Identity(id=str(user_id), username=username, role=role)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> Identity:
    """Resolve the caller from the Authorization header, or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Not authenticated")
    return token_service.verify(credentials.credentials)


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> Optional[Identity]:
    """Get the caller if a valid token was sent, otherwise return None."""
    if credentials is None or not credentials.credentials:
        return None

    try:
        return token_service.verify(credentials.credentials)
    except Unauthorized:
        return None
