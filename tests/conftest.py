"""
Test configuration and shared fixtures for the report builder test suite.
Provides in-memory databases, the seeded inventory store and a test client.
"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from reportbuilder.app import create_app
from reportbuilder.catalog.defaults import DEFAULT_CATALOG
from reportbuilder.core.config import Settings
from reportbuilder.core.database import Base, Database, StoreBase
from reportbuilder.logging import models as log_models  # noqa: F401
from reportbuilder.query.engine import ReportEngine
from reportbuilder.query.planner import QueryPlanner
from reportbuilder.reporting import models as reporting_models  # noqa: F401
from reportbuilder.store import models as store_models  # noqa: F401
from reportbuilder.store.sample_data import seed_sample_data
from reportbuilder.store.storage import ReportStorage

TEST_MAX_ROWS = 100


# ===== DATABASE SETUP =====

@pytest.fixture
def config_db() -> Generator[Database, None, None]:
    """In-memory SQLite config database (saved reports and logs)."""
    database = Database("sqlite://")
    database.create_all(Base)
    yield database
    database.dispose()


@pytest.fixture
def store_db() -> Generator[Database, None, None]:
    """In-memory SQLite inventory store loaded with the sample data."""
    database = Database("sqlite://")
    database.create_all(StoreBase)
    with database.session() as session:
        seed_sample_data(session)
    yield database
    database.dispose()


@pytest.fixture
def store_session(store_db) -> Generator[Session, None, None]:
    session = store_db.session()
    try:
        yield session
    finally:
        session.close()


# ===== CORE OBJECTS =====

@pytest.fixture(scope="session")
def planner() -> QueryPlanner:
    """Planner over the default catalog; it holds no per-request state."""
    return QueryPlanner(DEFAULT_CATALOG, StoreBase.metadata)


@pytest.fixture
def engine(planner, store_session) -> ReportEngine:
    return ReportEngine(planner, ReportStorage(store_session), max_rows=TEST_MAX_ROWS)


# ===== APPLICATION =====

@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        store_database_url="sqlite://",
        max_rows=TEST_MAX_ROWS,
        require_tenant=True,
        application_id="report-builder-tests",
    )


@pytest.fixture
def app(settings, config_db, store_db):
    return create_app(settings, config_db=config_db, store_db=store_db)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
