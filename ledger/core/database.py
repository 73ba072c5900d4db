"""Storage handle: engine, session factory and the request-scoped session dependency."""

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ledger.core.errors import LedgerError, StorageError

logger = logging.getLogger(__name__)

Base: Any = declarative_base()


def create_db_engine(dsn: str, **kwargs: Any) -> Engine:
    """Create an engine for ``dsn`` with the connect args its dialect needs."""
    connect_args = {"check_same_thread": False} if dsn.startswith("sqlite") else {}
    connect_args.update(kwargs.pop("connect_args", {}))
    return create_engine(dsn, connect_args=connect_args, pool_pre_ping=True, **kwargs)


class Database:
    """Owns one engine and its session factory.

    Built once by the application entry point and passed to whatever needs
    sessions, so tests can hand in their own engine.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_dsn(cls, dsn: str) -> "Database":
        return cls(create_db_engine(dsn))

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        """Create all tables known to the metadata."""
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session, action: str) -> Iterator[None]:
    """Commit on success; roll back on any failure.

    Storage failures are logged and re-raised as ``StorageError`` so callers
    only ever see ledger errors.
    """
    try:
        yield
        db.commit()
    except LedgerError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to %s", action)
        raise StorageError("Database error") from e
