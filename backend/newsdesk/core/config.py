from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Union, Optional
from pydantic import field_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env
    )

    # Database
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = "newsdesk"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "newsdesk"

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Explicit DATABASE_URL if configured, otherwise built from the POSTGRES_* parts."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Tokens
    SECRET_KEY: str
    TOKEN_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_HOURS: int = 24

    # Password hashing
    PASSWORD_HASH_ROUNDS: int = 12  # bcrypt cost factor

    # Application
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: Union[List[str], str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            # Split by comma or keep as single item
            return [origin.strip() for origin in v.split(",")]
        return v

    # Storage
    MEDIA_ROOT: str = "./uploads"
    MEDIA_URL_PREFIX: str = "/uploads"

    # Upload limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB per file
    ALLOWED_UPLOAD_TYPES: List[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "application/pdf",
    ]

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    DEFAULT_RATE_LIMIT: str = "100/minute"
    AUTH_RATE_LIMIT: str = "10/minute"

    # Security headers
    ENABLE_HSTS: bool = True
    HSTS_MAX_AGE: int = 31536000  # 1 year in seconds
    HSTS_INCLUDE_SUBDOMAINS: bool = True
    HSTS_PRELOAD: bool = False

    @property
    def is_production(self) -> bool:
        """Detect if running in production environment."""
        return not self.DEBUG
