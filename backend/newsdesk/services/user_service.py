"""
Credential store: user accounts, password checks and profile updates.
"""

import logging
from typing import BinaryIO, Optional
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from newsdesk.core.auth import Identity
from newsdesk.core.database import utcnow
from newsdesk.core.errors import Forbidden, NotFound, Unauthorized, ValidationError
from newsdesk.core.passwords import BCRYPT_ROUNDS, hash_password, verify_password
from newsdesk.models.user import User, UserRole
from newsdesk.schemas.user import ProfileUpdate, RegisterRequest
from newsdesk.services.file_storage import FileStorage

logger = logging.getLogger(__name__)


class UserService:
    """Lookup, creation and self-service updates of user records."""

    def __init__(self, db: Session, password_rounds: int = BCRYPT_ROUNDS):
        self.db = db
        self.password_rounds = password_rounds

    def get(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFound("User not found")
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> User:
        """
        Create a user after checking that email and username are free.

        Raises:
            ValidationError: If the email or username is already taken
        """
        email = email.lower()
        existing = (
            self.db.query(User)
            .filter(or_(User.email == email, User.username == username))
            .first()
        )
        if existing:
            raise ValidationError("A user with this email or username already exists")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, rounds=self.password_rounds),
            role=role,
            first_name=first_name,
            last_name=last_name,
            bio=bio,
            active=True,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration
            self.db.rollback()
            raise ValidationError("A user with this email or username already exists")
        self.db.refresh(user)

        logger.info(f"Created user {user.id} ({user.username}) with role {role.value}")
        return user

    def register(self, data: RegisterRequest) -> User:
        """Self-registration always produces a ``user``-role account."""
        return self.create_user(
            username=data.username,
            email=data.email,
            password=data.password,
            role=UserRole.USER,
            first_name=data.first_name,
            last_name=data.last_name,
        )

    def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials and record the login time.

        Raises:
            Unauthorized: If the email is unknown or the password does not match
            Forbidden: If the account is deactivated
        """
        user = self.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise Unauthorized("Invalid email or password")

        if not user.active:
            raise Forbidden("Account is deactivated")

        user.last_login = utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_profile(self, user_id: str, data: ProfileUpdate) -> User:
        user = self.get(user_id)

        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if value is not None:
                setattr(user, key, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """
        Replace the password after verifying the current one.

        Raises:
            ValidationError: If ``current_password`` does not match
        """
        user = self.get(user_id)
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

        user.password_hash = hash_password(new_password, rounds=self.password_rounds)
        self.db.commit()

    def replace_avatar(
        self,
        user_id: str,
        storage: FileStorage,
        source: BinaryIO,
        original_name: Optional[str],
        content_type: Optional[str],
    ) -> User:
        """Store a new avatar file and remove the previous one, best-effort."""
        user = self.get(user_id)
        if not (content_type or "").lower().startswith("image/"):
            raise ValidationError("Avatar must be an image")
        stored = storage.save(source, original_name, content_type)

        previous = user.avatar
        user.avatar = stored.url
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            storage.delete(stored.url)
            raise

        if previous:
            storage.delete(previous)

        self.db.refresh(user)
        return user

    @staticmethod
    def identity_for(user: User) -> Identity:
        return Identity(id=user.id, username=user.username, role=UserRole(user.role))
