"""Persistent client-side key-value storage.

Holds the bearer tokens and the theme preference as plain string values
under fixed keys. Only SessionStore writes the token keys; the theme key
belongs to ThemePreference.
"""
from datetime import datetime, UTC
from typing import Dict, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def utc_now():
    """Get current UTC timestamp."""
    return datetime.now(UTC)


class StoredValue(Base):
    """One persisted client value."""
    __tablename__ = "client_storage"

    key = Column(String(100), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    def __repr__(self):
        return f"<StoredValue(key={self.key})>"


class KeyValueStorage:
    """Interface shared by the storage backends."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """In-process storage; used by tests and short-lived scripts."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._values


class SqlStorage(KeyValueStorage):
    """
    SQLAlchemy-backed storage that survives process restarts.

    Pattern: Thin wrapper around SQLAlchemy, one row per key.
    """

    def __init__(self, database_url: str):
        """
        Initialize storage with database connection.

        Args:
            database_url: SQLAlchemy connection string
        """
        self.engine = create_engine(database_url, pool_pre_ping=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def get(self, key: str) -> Optional[str]:
        with self.SessionLocal() as db:
            row = db.get(StoredValue, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with self.SessionLocal() as db:
            row = db.get(StoredValue, key)
            if row:
                row.value = value
            else:
                db.add(StoredValue(key=key, value=value, updated_at=utc_now()))
            db.commit()

    def remove(self, key: str) -> None:
        with self.SessionLocal() as db:
            db.query(StoredValue).filter(StoredValue.key == key).delete()
            db.commit()
