"""Database configuration for the HomeOps calendar engine."""
from typing import Generator
from sqlmodel import create_engine, Session
from sqlalchemy import event
from sqlalchemy.engine import Engine

from homeops.config import get_settings

DATABASE_URL = get_settings().database_url

# Check if we're using PostgreSQL or SQLite
if DATABASE_URL.startswith("postgresql"):
    print("[DB CONFIG] Using PostgreSQL database")
else:
    print(f"[DB CONFIG] Using SQLite database: {DATABASE_URL}")


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine; SQLite connections get foreign keys switched on."""
    is_sqlite = database_url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(DATABASE_URL)


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
