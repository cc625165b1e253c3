import uuid
from datetime import datetime, timezone
from typing import Generator
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for the configured database."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a request-scoped session from the application's session factory."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def generate_id() -> str:
    """Opaque, globally unique identifier for new records."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
