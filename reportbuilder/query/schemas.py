"""
Query building schemas and types for the report builder.

Request types are pydantic models so the API validates them on the way in;
plans and results are frozen dataclasses produced per request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.sql import Select

from reportbuilder.catalog.schemas import AggregationKind, DataType, SortDirection, TableNode


class FilterOperator(str, Enum):
    """Comparison operators a filter clause can use."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER = "greater"
    GREATER_EQUAL = "greater_equal"
    LESS = "less"
    LESS_EQUAL = "less_equal"
    BETWEEN = "between"
    IN = "in"


# ===== REQUEST TYPES =====


class ColumnSelection(BaseModel):
    """A requested output column: a catalog field plus an optional aggregation override."""

    field: str = Field(min_length=1)
    aggregation: Optional[AggregationKind] = None
    alias: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def key(self) -> str:
        """Key of this column in every result row."""
        return self.alias or self.field


class FilterClause(BaseModel):
    field: str = Field(min_length=1)
    operator: FilterOperator = FilterOperator.EQUALS
    value: Any = None

    model_config = ConfigDict(frozen=True)

    def is_empty(self) -> bool:
        return self.value is None or self.value == ""


class SortClause(BaseModel):
    field: str = Field(min_length=1)
    direction: SortDirection = SortDirection.ASC

    model_config = ConfigDict(frozen=True)


class PageRequest(BaseModel):
    """Explicit pagination; callers opt into it to read results beyond the row cap."""

    offset: int = Field(0, ge=0)
    limit: int = Field(..., ge=1)

    model_config = ConfigDict(frozen=True)


class ReportDefinition(BaseModel):
    """What to report on. Saved reports persist exactly this."""

    data_sources: List[str] = []
    columns: List[ColumnSelection] = Field(..., min_length=1)
    filters: List[FilterClause] = []
    sorting: List[SortClause] = []
    grouping: List[str] = []

    model_config = ConfigDict(frozen=True)

    @field_validator("columns")
    @classmethod
    def _unique_column_keys(cls, columns: List[ColumnSelection]) -> List[ColumnSelection]:
        seen = set()
        for column in columns:
            if column.key in seen:
                raise ValueError(f"Duplicate column '{column.key}'; give repeated fields an alias")
            seen.add(column.key)
        return columns


class ReportRequest(ReportDefinition):
    """A single report execution: definition plus tenant scope and optional page."""

    tenant_id: Optional[str] = None
    page: Optional[PageRequest] = None

    @classmethod
    def from_definition(
        cls, definition: ReportDefinition, tenant_id: Optional[str] = None, page: Optional[PageRequest] = None
    ) -> "ReportRequest":
        return cls(**definition.model_dump(), tenant_id=tenant_id, page=page)


# ===== PLAN AND RESULT TYPES =====


@dataclass(frozen=True)
class JoinPlan:
    """Tables to combine, each after every table it depends on. The base table is first."""

    nodes: Tuple[TableNode, ...]

    @property
    def base(self) -> TableNode:
        return self.nodes[0]

    @property
    def table_names(self) -> List[str]:
        return [node.name for node in self.nodes]

    def __iter__(self) -> Iterator[TableNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, table: object) -> bool:
        return any(node.name == table for node in self.nodes)


@dataclass(frozen=True)
class ResultColumn:
    """Metadata for one output column."""

    key: str
    field_id: str
    label: str
    data_type: DataType
    aggregation: AggregationKind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "field": self.field_id,
            "label": self.label,
            "data_type": self.data_type.value,
            "aggregation": self.aggregation.value,
        }


@dataclass(frozen=True)
class AssembledQuery:
    """An executable statement with the plan and column metadata it was built from."""

    statement: Select
    plan: JoinPlan
    columns: Tuple[ResultColumn, ...]


@dataclass(frozen=True)
class ReportResult:
    """Tabular report output: ordered rows mapping column key to value."""

    columns: Tuple[ResultColumn, ...]
    rows: Tuple[Dict[str, Any], ...]
    sql: str = ""
    execution_time_ms: Optional[float] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_keys(self) -> List[str]:
        return [column.key for column in self.columns]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": [column.to_dict() for column in self.columns],
            "rows": [dict(row) for row in self.rows],
            "row_count": self.row_count,
            "execution_time_ms": self.execution_time_ms,
        }
