"""FastAPI application factory for the report builder service."""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reportbuilder.catalog.loader import load_catalog_config
from reportbuilder.core.config import Settings
from reportbuilder.core.database import Database, StoreBase, init_db
from reportbuilder.core.router import register_routes
from reportbuilder.logging.exception_handlers import register_exception_handlers
from reportbuilder.logging.middleware import LoggingMiddleware
from reportbuilder.query.planner import QueryPlanner

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    config_db: Optional[Database] = None,
    store_db: Optional[Database] = None,
) -> FastAPI:
    """
    Build the application.

    The report catalog and table graph are validated here; a bad catalog
    raises ``CatalogConfigError`` (or ``CyclicDependencyError``) and the
    service never starts.
    """
    settings = settings or Settings.from_env()
    config_db = config_db or Database(settings.database_url)
    store_db = store_db or Database(settings.store_database_url)

    init_db(config_db, store_db)
    planner = QueryPlanner(
        load_catalog_config(settings.catalog_path),
        StoreBase.metadata,
        require_tenant=settings.require_tenant,
    )

    app = FastAPI(
        title="Report Builder",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.state.settings = settings
    app.state.config_db = config_db
    app.state.store_db = store_db
    app.state.planner = planner

    # Add request logger middleware
    app.add_middleware(
        LoggingMiddleware,
        application_id=settings.application_id,
        excluded_paths=settings.log_excluded_paths,
    )
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    logger.info("Report builder ready (max rows %d, tenant required: %s)", settings.max_rows, settings.require_tenant)
    return app
