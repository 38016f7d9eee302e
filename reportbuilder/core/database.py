# reportbuilder/core/database.py
"""Database configuration with separate config and inventory store databases.

Engines are owned by ``Database`` objects that the application factory builds
and keeps on ``app.state``; request handlers get sessions through the
``get_db`` / ``get_store_db`` dependencies.
"""

import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# ===== CONFIG DATABASE =====
# Stores saved reports, execution logs and request logs.
Base = declarative_base()

# ===== INVENTORY STORE DATABASE =====
# Stores tenant inventory data: items, entries, users, suppliers.
StoreBase = declarative_base()


def build_engine(url: str) -> Engine:
    """Create an engine, sharing a single connection for in-memory SQLite."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


class Database:
    """An engine plus its session factory."""

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None:
            if url is None:
                raise ValueError("Database needs either a URL or an engine")
            engine = build_engine(url)
        self.engine = engine
        self.SessionLocal = sessionmaker(autoflush=False, bind=engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self, base) -> None:
        base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


# ===== SESSION GENERATORS =====


def get_db(request: Request) -> Iterator[Session]:
    """Get config database session."""
    db = request.app.state.config_db.session()
    try:
        yield db
    finally:
        db.close()


def get_store_db(request: Request) -> Iterator[Session]:
    """Get inventory store database session."""
    db = request.app.state.store_db.session()
    try:
        yield db
    finally:
        db.close()


# ===== TABLE CREATION =====


def init_db(config_db: Database, store_db: Database) -> None:
    """Create tables in both databases."""
    # Import models to ensure they're registered with their Base classes
    from reportbuilder.logging.models import Log  # noqa: F401
    from reportbuilder.reporting.models import SavedReport, ReportExecutionLog  # noqa: F401
    from reportbuilder.store.models import Item, InventoryEntry, User, ItemSupplier, Supplier  # noqa: F401

    logger.info("Creating config database tables")
    config_db.create_all(Base)

    logger.info("Creating inventory store tables")
    store_db.create_all(StoreBase)
