import enum
from sqlalchemy import Column, String, Text, DateTime, Boolean, Enum
from sqlalchemy.orm import relationship
from newsdesk.core.database import Base, generate_id, utcnow


class UserRole(str, enum.Enum):
    USER = "user"
    EDITOR = "editor"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)  # bcrypt, never plaintext

    first_name = Column(String(100))
    last_name = Column(String(100))
    bio = Column(Text)
    avatar = Column(String, nullable=True)  # URL of the stored avatar file

    role = Column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.USER,
    )

    # Metadata
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    articles = relationship("Article", back_populates="author")
    comments = relationship("Comment", back_populates="author")
    media = relationship("Media", back_populates="uploaded_by")

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role={self.role})>"
