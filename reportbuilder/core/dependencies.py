"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from reportbuilder.core.config import Settings
from reportbuilder.core.database import get_db, get_store_db
from reportbuilder.query.planner import QueryPlanner

# Core database dependencies
SessionDep = Annotated[Session, Depends(get_db)]
StoreSessionDep = Annotated[Session, Depends(get_store_db)]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_query_planner(request: Request) -> QueryPlanner:
    """The planner built and validated at startup."""
    return request.app.state.planner


SettingsDep = Annotated[Settings, Depends(get_settings)]
PlannerDep = Annotated[QueryPlanner, Depends(get_query_planner)]
