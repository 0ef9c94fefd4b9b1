from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from config import Settings, get_settings
from bookquiz.db.models.base import Base


class Database:
    """
    Storage handle: one engine and its session factory.

    Created explicitly and passed to the operations that need it, so every
    caller decides which database it talks to and when the pool is disposed.
    """

    def __init__(self, url: str, echo: bool = False):
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.url = url
        self.engine: Engine = create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        self._session_factory = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Database:
        settings = settings or get_settings()
        return cls(settings.database_url, echo=settings.log_level == "DEBUG")

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()

    def check_health(self) -> tuple[str, str | None]:
        """
        Check database connectivity.

        Returns:
            Tuple of (status, error_message). Status is "ok" or "error".
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return "ok", None
        except SQLAlchemyError as e:
            return "error", str(e)

    def dispose(self) -> None:
        self.engine.dispose()


def display_url(url: str) -> str:
    """Connection string without credentials."""
    return url.split("@")[-1] if "@" in url else url


def init_db(database: Database) -> None:
    """Initialize database tables."""
    import bookquiz.db.models  # noqa: F401 - registers all tables on Base.metadata

    Base.metadata.create_all(bind=database.engine)
    logger.info("Database tables initialized")
