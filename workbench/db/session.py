"""Database engine, session factory, and dependency injection."""

import logging
from contextlib import contextmanager
from typing import Generator, Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from workbench.core.exceptions import ResourceConflictError

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for ``url``.

    SQLite is used by the test-suite and local runs; everything else gets the
    pooled configuration used for the MySQL deployment.
    """
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_size=20,
        max_overflow=80,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=echo,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency that provides a DB session per request."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success, roll back every pending change on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def flush_or_conflict(db: Session, message: str, code: str = "CONFLICT") -> None:
    """Flush pending writes, turning a unique-constraint violation into a conflict.

    The services check uniqueness before writing; this catches the duplicate
    that a concurrent request inserted in between.
    """
    try:
        db.flush()
    except IntegrityError as exc:
        logger.warning("Integrity error on flush: %s", exc.orig)
        raise ResourceConflictError(message, code=code) from exc
