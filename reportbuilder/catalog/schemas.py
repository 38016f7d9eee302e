"""
Typed configuration for the report field catalog and the table dependency graph.

Documents are validated once when loaded; anything malformed surfaces as a
``CatalogConfigError`` at startup instead of deep inside query execution.
"""

from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AggregationKind(str, Enum):
    """Reducing operations a column can apply."""

    NONE = "none"
    SUM = "sum"
    AVG = "avg"
    COUNT = "count"
    MIN = "min"
    MAX = "max"


class DataType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    BOOLEAN = "boolean"


class CalculatedField(str, Enum):
    """Named expressions for fields that are not a single physical column."""

    LINE_VALUE = "line_value"  # entry quantity * unit price
    CURRENT_STOCK = "current_stock"  # IN minus OUT entries for the item


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FieldDescriptor(BaseModel):
    """Binds a user-facing report field to its owning table and aggregation."""

    id: str = Field(min_length=1)
    label: str
    owner_table: str
    column: Optional[str] = None
    calculated: Optional[CalculatedField] = None
    data_type: DataType = DataType.TEXT
    aggregation: AggregationKind = AggregationKind.NONE
    description: Optional[str] = None
    category: str = "General"

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _column_or_expression(self) -> "FieldDescriptor":
        if (self.column is None) == (self.calculated is None):
            raise ValueError(f"Field '{self.id}' must define exactly one of 'column' or 'calculated'")
        return self

    @property
    def is_aggregated(self) -> bool:
        return self.aggregation != AggregationKind.NONE

    def with_aggregation(self, aggregation: Optional[AggregationKind]) -> "FieldDescriptor":
        """Copy of this descriptor with a per-request aggregation override."""
        if aggregation is None or aggregation == self.aggregation:
            return self
        return self.model_copy(update={"aggregation": aggregation})


class JoinKey(BaseModel):
    """One foreign-key column pair of a dependency edge: ``column = parent_table.parent_column``."""

    column: str
    parent_table: str
    parent_column: str

    model_config = ConfigDict(frozen=True)


class TableNode(BaseModel):
    """A table in the dependency graph and the tables that must be joined before it."""

    name: str = Field(min_length=1)
    depends_on: FrozenSet[str] = frozenset()
    join_keys: Tuple[JoinKey, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _keys_match_dependencies(self) -> "TableNode":
        if self.name in self.depends_on:
            raise ValueError(f"Table '{self.name}' cannot depend on itself")
        key_parents = {key.parent_table for key in self.join_keys}
        stray = key_parents - self.depends_on
        if stray:
            raise ValueError(f"Table '{self.name}' has join keys for non-dependencies: {sorted(stray)}")
        missing = self.depends_on - key_parents
        if missing:
            raise ValueError(f"Table '{self.name}' has no join keys for dependencies: {sorted(missing)}")
        return self


class TableGraphConfig(BaseModel):
    """The fixed set of joinable tables, rooted at one base table."""

    base_table: str
    tables: List[TableNode]
    # Row scoping applied to the base table on every report
    tenant_column: Optional[str] = None
    active_column: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_references(self) -> "TableGraphConfig":
        names = [table.name for table in self.tables]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate table names in graph: {duplicates}")
        known = set(names)
        if self.base_table not in known:
            raise ValueError(f"Base table '{self.base_table}' is not declared in the graph")
        for table in self.tables:
            unknown = table.depends_on - known
            if unknown:
                raise ValueError(f"Table '{table.name}' depends on unknown tables: {sorted(unknown)}")
        if self.table(self.base_table).depends_on:
            raise ValueError(f"Base table '{self.base_table}' cannot have dependencies")
        return self

    def table(self, name: str) -> TableNode:
        for table in self.tables:
            if table.name == name:
                return table
        raise KeyError(name)


class CatalogConfig(BaseModel):
    """Complete catalog document: fields, table graph and default ordering."""

    fields: List[FieldDescriptor]
    graph: TableGraphConfig
    default_sort_field: Optional[str] = None
    default_sort_direction: SortDirection = SortDirection.DESC

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_fields(self) -> "CatalogConfig":
        ids = [descriptor.id for descriptor in self.fields]
        duplicates = sorted({field_id for field_id in ids if ids.count(field_id) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field ids in catalog: {duplicates}")
        if self.default_sort_field is not None:
            owners = {descriptor.id: descriptor.owner_table for descriptor in self.fields}
            if self.default_sort_field not in owners:
                raise ValueError(f"Default sort field '{self.default_sort_field}' is not in the catalog")
            if owners[self.default_sort_field] != self.graph.base_table:
                raise ValueError("Default sort field must live on the base table")
        return self
