"""SQLAlchemy + SQLite key-value storage for client-side state.

One row per key; values are JSON strings written and read wholesale.
"""

import os
from datetime import datetime, timezone

import structlog
from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = structlog.get_logger(__name__)

Base = declarative_base()


class KeyValue(Base):
    """Persistent key-value row."""
    __tablename__ = "kv_store"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))


_engine = None
_SessionLocal = None


def init_db(database_url: str | None = None) -> None:
    """Create engine + tables. Call once at startup.

    Args:
        database_url: SQLAlchemy connection string. Defaults to DATABASE_URL env var.
    """
    global _engine, _SessionLocal

    url = database_url or os.environ.get("DATABASE_URL", "sqlite:///chatbot.sqlite")
    _engine = create_engine(url, echo=False)
    _SessionLocal = sessionmaker(bind=_engine)

    Base.metadata.create_all(_engine)
    logger.info("db.initialized", url=url.split("///")[0] + "///***")


def get_session() -> Session:
    """Get a new database session."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _SessionLocal()


def put_value(key: str, value: str) -> None:
    """Insert or overwrite the value stored under key."""
    with get_session() as session:
        row = session.get(KeyValue, key)
        if row is None:
            session.add(KeyValue(key=key, value=value))
        else:
            row.value = value
            row.updated_at = datetime.now(timezone.utc)
        session.commit()
        logger.debug("db.value_saved", key=key, size=len(value))


def get_value(key: str) -> str | None:
    with get_session() as session:
        row = session.get(KeyValue, key)
        return row.value if row else None


def delete_value(key: str) -> bool:
    """Remove key. Returns True if a row was deleted."""
    with get_session() as session:
        row = session.get(KeyValue, key)
        if row is None:
            return False
        session.delete(row)
        session.commit()
        logger.debug("db.value_deleted", key=key)
        return True
