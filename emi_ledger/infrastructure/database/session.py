"""Database handle with explicit lifecycle and connection pooling"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from emi_ledger.config import Settings
from emi_ledger.infrastructure.database.models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    Opened once at service start and disposed at shutdown; components receive
    the handle instead of importing a module-level engine.
    """

    def __init__(self, url: str, **engine_options):
        self.url = url
        self.engine_options = engine_options
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        if settings.database_url.startswith("sqlite"):
            # SQLite connections are shared across the threadpool; wait on writer locks
            return cls(
                settings.database_url,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        return cls(
            settings.database_url,
            pool_pre_ping=True,  # Verify connections before using
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=settings.db_pool_recycle_seconds,
        )

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> "Database":
        if self.engine is None:
            self.engine = create_engine(self.url, **self.engine_options)
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        return self

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self._session_factory = None

    def session(self) -> Session:
        """New session; the caller is responsible for closing it"""
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        """Run a trivial query to confirm connectivity"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connectivity check failed: {e}")
            return False


def get_database(request: Request) -> Database:
    """Dependency injection for the database handle opened by the app lifespan"""
    return request.app.state.database


@contextmanager
def session_scope(database: Database) -> Iterator[Session]:
    """Yield a session and always close it"""
    db = database.session()
    try:
        yield db
    finally:
        db.close()
