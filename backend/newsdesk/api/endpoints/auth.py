from fastapi import APIRouter, Depends, File, Request, UploadFile, status
import logging

from newsdesk.api.deps import get_user_service
from newsdesk.core.auth import Identity, TokenService, get_current_identity, get_token_service
from newsdesk.core.errors import Forbidden, Unauthorized
from newsdesk.core.logging_config import log_security_event
from newsdesk.core.rate_limit import auth_limit, limiter
from newsdesk.schemas.base import MessageResponse
from newsdesk.schemas.user import (
    AuthResponse,
    AvatarResponse,
    LoginRequest,
    PasswordChange,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    UserProfile,
)
from newsdesk.services.file_storage import FileStorage, get_file_storage
from newsdesk.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_limit)
def register(
    request: Request,
    data: RegisterRequest,
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
):
    """Create a ``user``-role account and return a token for it."""
    user = users.register(data)

    log_security_event(
        event_type="auth.user.created",
        message="New user account registered",
        actor=user,
        request=request,
        entity_type="user",
        entity_id=user.id,
        event_category="authentication",
    )

    return AuthResponse(
        message="User registered successfully",
        token=tokens.issue(users.identity_for(user)),
        user=UserProfile.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(auth_limit)
def login(
    request: Request,
    data: LoginRequest,
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
):
    """Verify credentials and issue a token."""
    try:
        user = users.authenticate(data.email, data.password)
    except (Unauthorized, Forbidden) as e:
        log_security_event(
            event_type="auth.login.failure",
            message=f"Login failed: {e.message}",
            level=logging.WARNING,
            request=request,
            event_category="authentication",
            email=data.email,
        )
        raise

    log_security_event(
        event_type="auth.login.success",
        message="User logged in successfully",
        actor=user,
        request=request,
        event_category="authentication",
    )

    return AuthResponse(
        message="Login successful",
        token=tokens.issue(users.identity_for(user)),
        user=UserProfile.model_validate(user),
    )


@router.get("/me", response_model=UserProfile)
def get_current_user_info(
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
):
    """Get current user information."""
    logger.debug(f"Get user info for user ID: {identity.id}")
    return UserProfile.model_validate(users.get(identity.id))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    data: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
):
    """Update the caller's first name, last name and bio."""
    user = users.update_profile(identity.id, data)
    return ProfileResponse(
        message="Profile updated successfully",
        user=UserProfile.model_validate(user),
    )


@router.put("/change-password", response_model=MessageResponse)
@limiter.limit(auth_limit)
def change_password(
    request: Request,
    data: PasswordChange,
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
):
    """Replace the caller's password; the current one must match."""
    users.change_password(identity.id, data.current_password, data.new_password)

    log_security_event(
        event_type="auth.password.changed",
        message="Password changed",
        actor=identity,
        request=request,
        entity_type="user",
        entity_id=identity.id,
        event_category="authentication",
    )
    return MessageResponse(message="Password changed successfully")


@router.post("/avatar", response_model=AvatarResponse)
def upload_avatar(
    request: Request,
    file: UploadFile = File(...),
    identity: Identity = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
    storage: FileStorage = Depends(get_file_storage),
):
    """Replace the caller's avatar image."""
    user = users.replace_avatar(
        identity.id, storage, file.file, file.filename, file.content_type
    )

    log_security_event(
        event_type="auth.avatar.replaced",
        message="Avatar replaced",
        actor=identity,
        request=request,
        entity_type="user",
        entity_id=identity.id,
        event_category="account",
        avatar=user.avatar,
    )
    return AvatarResponse(message="Avatar updated successfully", avatar=user.avatar)
