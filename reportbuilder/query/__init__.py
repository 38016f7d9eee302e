"""Dynamic report query building: join resolution, assembly and execution."""

from .builder import QueryAssembler
from .engine import ReportEngine
from .planner import QueryPlanner
from .resolver import JoinGraphResolver
from .schemas import (
    AssembledQuery,
    ColumnSelection,
    FilterClause,
    FilterOperator,
    JoinPlan,
    PageRequest,
    ReportDefinition,
    ReportRequest,
    ReportResult,
    ResultColumn,
    SortClause,
)

__all__ = [
    "QueryAssembler",
    "ReportEngine",
    "QueryPlanner",
    "JoinGraphResolver",
    "AssembledQuery",
    "ColumnSelection",
    "FilterClause",
    "FilterOperator",
    "JoinPlan",
    "PageRequest",
    "ReportDefinition",
    "ReportRequest",
    "ReportResult",
    "ResultColumn",
    "SortClause",
]
