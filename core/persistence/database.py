"""Database access object.

One ``Database`` is constructed at application startup, handed to the
components that need it, and closed at shutdown. Every SQLAlchemy failure
crossing this boundary is re-raised as ``StorageUnavailable``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.exceptions import StorageUnavailable
from core.persistence.tables import Base

logger = logging.getLogger(__name__)


def _build_engine(url: str) -> Engine:
    """Create an engine, sharing one connection for in-memory SQLite."""
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, **kwargs)
    return create_engine(url, future=True, pool_pre_ping=True)


class Database:
    """Owns the engine and session factory for one database."""

    def __init__(self, url: str):
        """Initialize the database handle.

        Args:
            url: SQLAlchemy database URL.

        Raises:
            StorageUnavailable: If the URL or its driver is unusable.
        """
        self._url = url
        try:
            self._engine = _build_engine(url)
        except (SQLAlchemyError, ImportError) as e:
            raise StorageUnavailable(f"Cannot create database engine: {e}") from e
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
            future=True,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_all(self) -> None:
        """Create missing tables."""
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Cannot create tables: {e}") from e

    def ping(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed: %s", e)
            return False

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        try:
            db_session: Session = self._session_factory()
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Cannot open database session: {e}") from e
        try:
            yield db_session
            db_session.commit()
        except SQLAlchemyError as e:
            db_session.rollback()
            raise StorageUnavailable(f"Database operation failed: {e}") from e
        except Exception:
            db_session.rollback()
            raise
        finally:
            db_session.close()

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()
        logger.info("Database connections closed")
