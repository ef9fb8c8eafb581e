"""
Database engine and session handling.

PostgreSQL in deployment, SQLite for local runs and tests. Routes get a
session per request through the get_db dependency.
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./exam_prep.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))

IS_SQLITE = DATABASE_URL.startswith("sqlite")


def engine_options(url: str) -> dict:
    """Keyword arguments for create_engine, depending on the backend."""
    if url.startswith("sqlite"):
        # Sync routes run in FastAPI's threadpool
        return {"echo": DB_ECHO, "connect_args": {"check_same_thread": False}}
    return {
        "echo": DB_ECHO,
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


def set_sqlite_pragma(dbapi_connection, connection_record):
    """SQLite leaves foreign keys off unless asked; results and tests rely on them."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    if DATABASE_URL not in ("sqlite://", "sqlite:///:memory:"):
        cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))
if IS_SQLITE:
    event.listen(engine, "connect", set_sqlite_pragma)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """Request-scoped session; closed (and any open transaction rolled back) afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create the schema in place. Only used for SQLite; PostgreSQL goes through Alembic."""
    Base.metadata.create_all(bind=engine)
