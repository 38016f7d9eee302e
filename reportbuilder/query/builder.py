"""
QueryAssembler: turns a join plan plus a report request into one SQLAlchemy select.

The assembler performs no I/O. Every value from the request reaches the
statement as a bound parameter.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import MetaData, Table, and_, case, func, select, true
from sqlalchemy.sql import ColumnElement, FromClause

from reportbuilder.catalog.registry import FieldCatalog
from reportbuilder.catalog.schemas import (
    AggregationKind,
    CalculatedField,
    FieldDescriptor,
    SortDirection,
    TableGraphConfig,
)
from reportbuilder.core.exceptions import (
    CatalogConfigError,
    InvalidAggregationError,
    InvalidDefinitionError,
    InvalidFilterError,
    MissingTenantError,
    UnresolvableFieldError,
)
from reportbuilder.query.schemas import (
    AssembledQuery,
    ColumnSelection,
    FilterClause,
    FilterOperator,
    JoinPlan,
    ReportRequest,
    ResultColumn,
    SortClause,
)

# Table each calculated expression reads its row-level columns from
CALCULATED_OWNERS: Dict[CalculatedField, str] = {
    CalculatedField.LINE_VALUE: "inventory_entries",
    CalculatedField.CURRENT_STOCK: "items",
}

# Store tables each calculated expression needs to exist
CALCULATED_SOURCES: Dict[CalculatedField, Tuple[str, ...]] = {
    CalculatedField.LINE_VALUE: ("inventory_entries",),
    CalculatedField.CURRENT_STOCK: ("items", "inventory_entries"),
}

_AGGREGATES: Dict[AggregationKind, Callable[[ColumnElement], ColumnElement]] = {
    AggregationKind.SUM: lambda expr: func.sum(expr),
    AggregationKind.AVG: lambda expr: func.avg(expr),
    AggregationKind.COUNT: lambda expr: func.count(expr),
    AggregationKind.MIN: lambda expr: func.min(expr),
    AggregationKind.MAX: lambda expr: func.max(expr),
}

SelectedColumn = Tuple[ColumnSelection, FieldDescriptor]

# Operators that take a list of values; every other operator takes one scalar
_LIST_OPERATORS = (FilterOperator.BETWEEN, FilterOperator.IN)
_COMPOUND_VALUES = (list, tuple, dict)


class QueryAssembler:
    """Builds report queries against the store schema described by ``metadata``."""

    def __init__(
        self,
        catalog: FieldCatalog,
        metadata: MetaData,
        graph: TableGraphConfig,
        require_tenant: bool = True,
        default_sort_field: Optional[str] = None,
        default_sort_direction: SortDirection = SortDirection.DESC,
    ):
        self.catalog = catalog
        self.graph = graph
        self.require_tenant = require_tenant
        self.default_sort_field = default_sort_field
        self.default_sort_direction = default_sort_direction
        self._metadata = metadata
        self._tables = self._bind_tables()
        self._check_fields()

    # ===== MAIN ENTRY POINT =====

    def assemble(self, request: ReportRequest, plan: JoinPlan, enforce_tenant: bool = True) -> AssembledQuery:
        """Build the executable query for a request over an already resolved plan."""
        columns = self.select_columns(request)
        grouping = self._grouping(request, plan)
        group_ids = {descriptor.id for descriptor in grouping}
        grouped = bool(grouping) or any(descriptor.is_aggregated for _, descriptor in columns)
        if grouped:
            self._check_grouping(columns, group_ids)

        selected: Dict[str, ColumnElement] = {}
        select_list = []
        for selection, descriptor in columns:
            self._require_in_plan(descriptor, plan)
            expr = self._aggregate(self._expression(descriptor), descriptor.aggregation)
            selected.setdefault(selection.key, expr)
            selected.setdefault(descriptor.id, expr)
            select_list.append(expr.label(selection.key))

        statement = select(*select_list).select_from(self._from_clause(plan))

        conditions = self._scope_conditions(request.tenant_id, enforce_tenant)
        conditions.extend(self._filter_conditions(request.filters, plan))
        if conditions:
            statement = statement.where(and_(*conditions))

        if grouping:
            statement = statement.group_by(*(self._expression(descriptor) for descriptor in grouping))

        order_by = self._order_by(request.sorting, selected, grouping, grouped, plan)
        if order_by:
            statement = statement.order_by(*order_by)

        if request.page is not None:
            statement = statement.offset(request.page.offset).limit(request.page.limit)

        return AssembledQuery(
            statement=statement,
            plan=plan,
            columns=tuple(self._result_column(selection, descriptor) for selection, descriptor in columns),
        )

    def select_columns(self, request: ReportRequest) -> List[SelectedColumn]:
        """Look up every requested column, applying per-request aggregation overrides."""
        for selection in request.columns:
            if selection.alias and selection.alias != selection.field and selection.alias in self.catalog:
                raise InvalidDefinitionError(
                    f"Alias '{selection.alias}' of column '{selection.field}' names another report field",
                    field=selection.field,
                )
        return [
            (selection, self.catalog.lookup(selection.field).with_aggregation(selection.aggregation))
            for selection in request.columns
        ]

    # ===== FROM / JOIN =====

    def _from_clause(self, plan: JoinPlan) -> FromClause:
        """Base table LEFT OUTER JOINed to each planned table on its dependency edge."""
        from_clause: FromClause = self._tables[plan.base.name]
        for node in plan.nodes[1:]:
            table = self._tables[node.name]
            onclause = and_(
                *(
                    table.c[key.column] == self._tables[key.parent_table].c[key.parent_column]
                    for key in node.join_keys
                )
            )
            from_clause = from_clause.outerjoin(table, onclause)
        return from_clause

    # ===== EXPRESSIONS =====

    def _expression(self, descriptor: FieldDescriptor) -> ColumnElement:
        if descriptor.calculated is None:
            return self._tables[descriptor.owner_table].c[descriptor.column]

        if descriptor.calculated == CalculatedField.LINE_VALUE:
            entries = self._tables["inventory_entries"]
            return entries.c.quantity * func.coalesce(entries.c.unit_price, 0)

        if descriptor.calculated == CalculatedField.CURRENT_STOCK:
            items = self._tables["items"]
            movements = self._store_table("inventory_entries").alias("stock_movements")
            signed_quantity = case(
                (movements.c.type == "IN", movements.c.quantity),
                (movements.c.type == "OUT", -movements.c.quantity),
                else_=0,
            )
            return (
                select(func.coalesce(func.sum(signed_quantity), 0))
                .where(movements.c.item_id == items.c.id)
                .scalar_subquery()
            )

        raise CatalogConfigError(
            f"Unsupported calculated field '{descriptor.calculated}'", field=descriptor.id
        )

    @staticmethod
    def _aggregate(expr: ColumnElement, aggregation: AggregationKind) -> ColumnElement:
        if aggregation == AggregationKind.NONE:
            return expr
        return _AGGREGATES[aggregation](expr)

    # ===== GROUPING =====

    def _grouping(self, request: ReportRequest, plan: JoinPlan) -> List[FieldDescriptor]:
        grouping = []
        for field_id in dict.fromkeys(request.grouping):
            descriptor = self.catalog.lookup(field_id)
            self._require_in_plan(descriptor, plan)
            grouping.append(descriptor)
        return grouping

    @staticmethod
    def _check_grouping(columns: Sequence[SelectedColumn], group_ids: set) -> None:
        """Standard SQL grouping: plain columns next to aggregates must be grouped."""
        aggregated = [selection.key for selection, descriptor in columns if descriptor.is_aggregated]
        for selection, descriptor in columns:
            if descriptor.is_aggregated or descriptor.id in group_ids:
                continue
            if aggregated:
                message = (
                    f"Column '{selection.key}' is neither aggregated nor grouped, "
                    f"but is selected alongside aggregated columns {aggregated}"
                )
            else:
                message = f"Column '{selection.key}' must be listed in grouping when grouping is used"
            raise InvalidAggregationError(message, field=descriptor.id, table=descriptor.owner_table)

    # ===== WHERE =====

    def _scope_conditions(self, tenant_id: Optional[str], enforce_tenant: bool) -> List[ColumnElement]:
        """Tenant and active-row predicates on the base table."""
        base = self._tables[self.graph.base_table]
        conditions: List[ColumnElement] = []
        if self.graph.tenant_column:
            if tenant_id is not None:
                conditions.append(base.c[self.graph.tenant_column] == tenant_id)
            elif enforce_tenant and self.require_tenant:
                raise MissingTenantError(table=self.graph.base_table)
        if self.graph.active_column:
            conditions.append(base.c[self.graph.active_column] == true())
        return conditions

    def _filter_conditions(self, filters: Sequence[FilterClause], plan: JoinPlan) -> List[ColumnElement]:
        conditions = []
        for clause in filters:
            if clause.is_empty():
                continue
            descriptor = self.catalog.lookup(clause.field)
            self._require_in_plan(descriptor, plan)
            conditions.append(self._filter_condition(self._expression(descriptor), clause))
        return conditions

    @staticmethod
    def _filter_condition(expr: ColumnElement, clause: FilterClause) -> ColumnElement:
        value: Any = clause.value
        operator = clause.operator
        if operator in _LIST_OPERATORS:
            if isinstance(value, (list, tuple)) and any(isinstance(item, _COMPOUND_VALUES) for item in value):
                raise InvalidFilterError(
                    f"Filter '{operator.value}' on '{clause.field}' takes a list of single values",
                    field=clause.field,
                )
        elif isinstance(value, _COMPOUND_VALUES):
            raise InvalidFilterError(
                f"Filter '{operator.value}' on '{clause.field}' takes a single value, not a list or object",
                field=clause.field,
            )

        if operator == FilterOperator.EQUALS:
            return expr == value
        if operator == FilterOperator.NOT_EQUALS:
            return expr != value
        if operator == FilterOperator.CONTAINS:
            return expr.icontains(str(value), autoescape=True)
        if operator == FilterOperator.NOT_CONTAINS:
            return ~expr.icontains(str(value), autoescape=True)
        if operator == FilterOperator.GREATER:
            return expr > value
        if operator == FilterOperator.GREATER_EQUAL:
            return expr >= value
        if operator == FilterOperator.LESS:
            return expr < value
        if operator == FilterOperator.LESS_EQUAL:
            return expr <= value
        if operator == FilterOperator.BETWEEN:
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise InvalidFilterError(
                    f"Filter 'between' on '{clause.field}' needs exactly two values", field=clause.field
                )
            return expr.between(value[0], value[1])
        if operator == FilterOperator.IN:
            if not isinstance(value, (list, tuple)) or not value:
                raise InvalidFilterError(
                    f"Filter 'in' on '{clause.field}' needs a non-empty list of values", field=clause.field
                )
            return expr.in_(list(value))

        raise InvalidFilterError(f"Unsupported filter operator '{operator}'", field=clause.field)

    # ===== ORDER BY =====

    def _order_by(
        self,
        sorting: Sequence[SortClause],
        selected: Dict[str, ColumnElement],
        grouping: Sequence[FieldDescriptor],
        grouped: bool,
        plan: JoinPlan,
    ) -> List[ColumnElement]:
        """Sort after aggregation, NULLs last in either direction."""
        group_ids = {descriptor.id for descriptor in grouping}
        clauses: List[ColumnElement] = []
        for sort in sorting:
            expr = selected.get(sort.field)
            if expr is None:
                descriptor = self.catalog.lookup(sort.field)
                self._require_in_plan(descriptor, plan)
                if grouped and descriptor.id not in group_ids:
                    raise InvalidAggregationError(
                        f"Cannot sort by '{sort.field}': it is neither selected nor grouped in an aggregated report",
                        field=sort.field,
                    )
                expr = self._expression(descriptor)
            clauses.extend(self._nulls_last(expr, sort.direction))

        if clauses:
            return clauses
        if grouping:
            return self._nulls_last(self._expression(grouping[0]), SortDirection.ASC)
        if not grouped and self.default_sort_field is not None:
            descriptor = self.catalog.lookup(self.default_sort_field)
            return self._nulls_last(self._expression(descriptor), self.default_sort_direction)
        return []

    @staticmethod
    def _nulls_last(expr: ColumnElement, direction: SortDirection) -> List[ColumnElement]:
        ordered = expr.desc() if direction == SortDirection.DESC else expr.asc()
        return [expr.is_(None), ordered]

    # ===== VALIDATION =====

    def _require_in_plan(self, descriptor: FieldDescriptor, plan: JoinPlan) -> None:
        if descriptor.owner_table not in plan:
            raise UnresolvableFieldError(descriptor.owner_table, descriptor.id)

    def _store_table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise CatalogConfigError(f"Table '{name}' is not defined in the store schema", table=name)
        return table

    def _bind_tables(self) -> Dict[str, Table]:
        """Map every graph table to its store table, checking join and scoping columns exist."""
        tables = {node.name: self._store_table(node.name) for node in self.graph.tables}
        for node in self.graph.tables:
            for key in node.join_keys:
                if key.column not in tables[node.name].c:
                    raise CatalogConfigError(
                        f"Join column '{node.name}.{key.column}' does not exist", table=node.name
                    )
                if key.parent_column not in tables[key.parent_table].c:
                    raise CatalogConfigError(
                        f"Join column '{key.parent_table}.{key.parent_column}' does not exist",
                        table=key.parent_table,
                    )
        base = tables[self.graph.base_table]
        for column in (self.graph.tenant_column, self.graph.active_column):
            if column is not None and column not in base.c:
                raise CatalogConfigError(
                    f"Scoping column '{self.graph.base_table}.{column}' does not exist",
                    table=self.graph.base_table,
                )
        return tables

    def _check_fields(self) -> None:
        """Every field on a known table must point at a real column or a supported expression."""
        for descriptor in self.catalog:
            if descriptor.owner_table not in self._tables:
                # Reported per request as an unresolvable field
                continue
            if descriptor.calculated is None:
                if descriptor.column not in self._tables[descriptor.owner_table].c:
                    raise CatalogConfigError(
                        f"Field '{descriptor.id}' points at missing column "
                        f"'{descriptor.owner_table}.{descriptor.column}'",
                        field=descriptor.id,
                    )
                continue
            if CALCULATED_OWNERS[descriptor.calculated] != descriptor.owner_table:
                raise CatalogConfigError(
                    f"Calculated field '{descriptor.id}' must be owned by "
                    f"'{CALCULATED_OWNERS[descriptor.calculated]}'",
                    field=descriptor.id,
                )
            for table in CALCULATED_SOURCES[descriptor.calculated]:
                if table not in self._tables and table not in self._metadata.tables:
                    raise CatalogConfigError(
                        f"Calculated field '{descriptor.id}' needs table '{table}'", field=descriptor.id
                    )
        if self.default_sort_field is not None:
            self.catalog.lookup(self.default_sort_field)

    @staticmethod
    def _result_column(selection: ColumnSelection, descriptor: FieldDescriptor) -> ResultColumn:
        label = selection.alias or descriptor.label
        if descriptor.is_aggregated and not selection.alias:
            label = f"{descriptor.label} ({descriptor.aggregation.value})"
        return ResultColumn(
            key=selection.key,
            field_id=descriptor.id,
            label=label,
            data_type=descriptor.data_type,
            aggregation=descriptor.aggregation,
        )
