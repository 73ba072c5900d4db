"""Shared test fixtures for all test modules."""

import contextlib
from collections.abc import Iterator
from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import ledger.models  # noqa: F401
from ledger.core.database import Base, Database, create_db_engine
from ledger.main import create_app
from ledger.models.outstanding import Outstanding
from ledger.models.shared import business_today
from ledger.services.outstanding_service import OutstandingService

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_db_engine("sqlite://", poolclass=StaticPool)
_test_database = Database(_test_engine)

RETAILER_ID = "retailer-001"
OTHER_RETAILER_ID = "retailer-002"


@pytest.fixture(autouse=True)
def setup_database() -> Iterator[None]:
    """Create tables before each test and truncate all data after."""
    Base.metadata.create_all(bind=_test_engine)
    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()


@pytest.fixture
def database() -> Database:
    return _test_database


@pytest.fixture
def db_session(database: Database) -> Iterator[Session]:
    """Create a database session for direct testing."""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(database: Database) -> FastAPI:
    return create_app(database=database)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    # Not used as a context manager: the lifespan would dispose the shared engine
    return TestClient(app)


@pytest.fixture
def make_obligation(db_session: Session):  # type: ignore[no-untyped-def]
    """Factory creating obligations through the service."""

    def _make(
        amount: str = "1000.00",
        user_id: str = RETAILER_ID,
        due_date: date | None = None,
        **kwargs: object,
    ) -> Outstanding:
        return OutstandingService(db_session).create_obligation(
            user_id=user_id,
            amount=Decimal(amount),
            due_date=due_date,
            **kwargs,  # type: ignore[arg-type]
        )

    return _make


@pytest.fixture
def yesterday() -> date:
    return business_today() - timedelta(days=1)


@pytest.fixture
def tomorrow() -> date:
    return business_today() + timedelta(days=1)
