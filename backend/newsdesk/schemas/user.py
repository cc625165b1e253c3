from pydantic import EmailStr, Field, field_validator
from datetime import datetime
from typing import Optional

from newsdesk.core.passwords import MAX_PASSWORD_BYTES
from newsdesk.models.user import UserRole
from .base import APIModel


def _check_password(v: str) -> str:
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")
    return v


class RegisterRequest(APIModel):
    username: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=1)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(APIModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class ProfileUpdate(APIModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = None


class PasswordChange(APIModel):
    current_password: str
    new_password: str = Field(min_length=1)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _check_password(v)


class UserSummary(APIModel):
    """Public view of a user embedded in articles, comments and media."""

    id: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None


class UserProfile(UserSummary):
    email: str
    role: UserRole
    bio: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class AuthResponse(APIModel):
    message: str
    token: str
    user: UserProfile


class ProfileResponse(APIModel):
    message: str
    user: UserProfile


class AvatarResponse(APIModel):
    message: str
    avatar: str
