"""
Database initialization and session management.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings
from app.infrastructure.database import models  # noqa: F401  registers the tables


def create_db_engine(database_url: str) -> Engine:
    if "sqlite" in database_url:
        return create_engine(database_url, echo=False, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=False)


DATABASE_URL = get_settings().get_engine_url()

engine = create_db_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Initialize database - create all tables."""
    bind = bind or engine
    if bind.url.get_backend_name() == "sqlite" and bind.url.database not in (None, "", ":memory:"):
        Path(bind.url.database).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(bind=bind)


if __name__ == "__main__":
    init_db()
    print("Database initialized successfully!")
