"""SQLAlchemy engine and session plumbing.

A single :class:`Store` owns the engine for the lifetime of the application.
It is created by the application factory, kept on ``app.state.store`` and handed
to route handlers through :func:`get_db`.
"""

from __future__ import annotations

from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.ids import IdFactory, new_id

# ``Base`` is the parent class for every SQLAlchemy model defined in renovaflow/models.
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ships with foreign keys off; cascades from projects depend on them.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """Engine, session factory and id generator shared by every request."""

    def __init__(self, url: str, *, id_factory: IdFactory = new_id) -> None:
        self.url = url
        self.id_factory = id_factory
        self.engine = self._build_engine(url)
        self.session_factory = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    @staticmethod
    def _build_engine(url: str) -> Engine:
        if not url.startswith("sqlite"):
            return create_engine(url)
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Every session shares the single in-memory connection.
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    def create_all(self) -> None:
        from ..models import billing, file, project, staff, user  # noqa: F401
        from .migrate import run_migrations

        Base.metadata.create_all(bind=self.engine)
        run_migrations(self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = get_store(request).session()
    try:
        yield db
    finally:
        db.close()
