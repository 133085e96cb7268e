"""State store connection and session management."""

import os
from typing import Any, Dict, Generator, Optional
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .models import Base
from ..config.settings import get_settings
from ..utils.logging import get_logger


logger = get_logger("state.database")


def _engine_options(url) -> Dict[str, Any]:
    if url.get_backend_name() == "sqlite":
        # one shared connection; resources are applied from a single event loop thread
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False, "timeout": 20},
        }
    return {"pool_pre_ping": True, "pool_recycle": 300}


class DatabaseManager:
    """Engine and session factory for the state store.

    Any SQLAlchemy URL works; the default is a SQLite file next to the
    manifest (``STATE_URL``).
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or get_settings().state.url
        self.url = make_url(self.database_url)

        self.engine = create_engine(self.url, echo=False, **_engine_options(self.url))
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine
        )

        logger.debug("State store initialized", backend=self.url.get_backend_name(), database=self.url.database)

    @property
    def is_memory(self) -> bool:
        return self.url.get_backend_name() == "sqlite" and self.url.database in (None, "", ":memory:")

    def create_tables(self):
        """Create the state table, and the SQLite file's directory if needed."""
        if self.url.get_backend_name() == "sqlite" and not self.is_memory:
            directory = os.path.dirname(os.path.abspath(self.url.database))
            os.makedirs(directory, exist_ok=True)

        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        Base.metadata.drop_all(bind=self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error("State transaction rolled back", error=str(e))
            raise
        finally:
            session.close()

    def test_connection(self) -> bool:
        try:
            with self.session_scope() as session:
                session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("State store connection test failed", error=str(e))
            return False
        return True


_db_manager: Optional[DatabaseManager] = None


def get_db_manager() -> DatabaseManager:
    """Get the process-wide state store, creating it from settings on first use."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def init_database(database_url: Optional[str] = None, create_tables: bool = True) -> DatabaseManager:
    """Open the state store and make it the process-wide one.

    Raises:
        RuntimeError: If the store cannot be reached
    """
    global _db_manager
    close_database()
    _db_manager = DatabaseManager(database_url)

    if create_tables:
        _db_manager.create_tables()

    if not _db_manager.test_connection():
        raise RuntimeError(f"Failed to open state store at {database_url or _db_manager.database_url}")

    return _db_manager


def close_database():
    """Dispose of the process-wide state store's connections."""
    global _db_manager
    if _db_manager:
        _db_manager.engine.dispose()
        _db_manager = None
