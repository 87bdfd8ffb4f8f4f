"""
Database engine and sessions (SQLAlchemy 2.0, synchronous).

One session per request through get_db. Services commit with safe_commit so
a failed commit never leaves the session in a half-flushed state.
"""

import os
from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from shared.config.settings import DATABASE_URL


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # Request threads each hold one connection while a closure runs
    pool_size = min((os.cpu_count() or 4) * 2 + 1, 20)
    return {
        "pool_pre_ping": True,
        "pool_size": pool_size,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: a session closed when the request ends."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def safe_commit(db: Session) -> None:
    """Commit, or roll back and re-raise."""
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
