"""
SQLite-backed durable storage.

Uses SQLAlchemy with a single key/value table holding serialized cache entries.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlalchemy import create_engine, Column, String, Text, DateTime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .storage import DurableStorage, StorageError

Base = declarative_base()


class CacheRecord(Base):
    """Serialized cache entry."""

    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)  # company_search_search_<query>
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def init_database(db_path: Path):
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy engine bound to the file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)
    return engine


class SqliteStorage(DurableStorage):
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._session_factory = None

    def _session(self):
        # Table creation is deferred to first use so an unwritable path only
        # fails the calls that touch it.
        if self._session_factory is None:
            try:
                engine = init_database(self.db_path)
            except (OSError, SQLAlchemyError) as e:
                raise StorageError(f"Cannot open cache database {self.db_path}: {e}") from e
            self._session_factory = sessionmaker(bind=engine)
        return self._session_factory()

    def get_item(self, key: str) -> Optional[str]:
        session = self._session()
        try:
            record = session.get(CacheRecord, key)
            return record.value if record is not None else None
        except SQLAlchemyError as e:
            raise StorageError(f"Cache read failed for {key}: {e}") from e
        finally:
            session.close()

    def set_item(self, key: str, value: str) -> None:
        session = self._session()
        try:
            session.merge(CacheRecord(key=key, value=value, updated_at=datetime.now()))
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Cache write failed for {key}: {e}") from e
        finally:
            session.close()

    def remove_item(self, key: str) -> None:
        session = self._session()
        try:
            session.query(CacheRecord).filter_by(key=key).delete()
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StorageError(f"Cache delete failed for {key}: {e}") from e
        finally:
            session.close()

    def keys(self) -> List[str]:
        session = self._session()
        try:
            return [k for (k,) in session.query(CacheRecord.key).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Cache key listing failed: {e}") from e
        finally:
            session.close()
