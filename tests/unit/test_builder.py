"""
Unit tests for query assembly: joins, bound parameters, grouping rules and configuration checks.
"""

import pytest
from sqlalchemy.dialects import sqlite

from reportbuilder.catalog.defaults import DEFAULT_CATALOG
from reportbuilder.catalog.schemas import FieldDescriptor
from reportbuilder.core.database import StoreBase
from reportbuilder.core.exceptions import (
    CatalogConfigError,
    CyclicDependencyError,
    InvalidAggregationError,
    InvalidDefinitionError,
    InvalidFilterError,
    MissingTenantError,
    UnknownFieldError,
    UnresolvableFieldError,
)
from reportbuilder.query.planner import QueryPlanner
from reportbuilder.query.schemas import ReportDefinition, ReportRequest


def compile_query(planner, **request):
    assembled = planner.prepare(ReportRequest(**request))
    return assembled, assembled.statement.compile(dialect=sqlite.dialect())


class TestJoinAssembly:
    """FROM clause construction"""

    def test_base_table_only(self, planner):
        _, compiled = compile_query(planner, columns=[{"field": "item_name"}], tenant_id="tenant-a")
        assert "JOIN" not in str(compiled)
        assert "FROM items" in str(compiled)

    def test_one_left_join_per_planned_table(self, planner):
        assembled, compiled = compile_query(
            planner, columns=[{"field": "item_name"}, {"field": "user_name"}], tenant_id="tenant-a"
        )
        sql = str(compiled)
        assert assembled.plan.table_names == ["items", "inventory_entries", "users"]
        assert sql.count("LEFT OUTER JOIN") == 2
        assert "LEFT OUTER JOIN inventory_entries ON inventory_entries.item_id = items.id" in sql
        assert "LEFT OUTER JOIN users ON users.id = inventory_entries.user_id" in sql

    def test_filter_and_sort_tables_are_joined(self, planner):
        assembled, _ = compile_query(
            planner,
            columns=[{"field": "item_name"}],
            filters=[{"field": "supplier_name", "operator": "contains", "value": "mill"}],
            sorting=[{"field": "entry_date", "direction": "desc"}],
            tenant_id="tenant-a",
        )
        assert assembled.plan.table_names == ["items", "inventory_entries", "item_suppliers", "suppliers"]

    def test_empty_filter_does_not_join(self, planner):
        assembled, _ = compile_query(
            planner,
            columns=[{"field": "item_name"}],
            filters=[{"field": "supplier_name", "operator": "equals", "value": ""}],
            tenant_id="tenant-a",
        )
        assert assembled.plan.table_names == ["items"]

    def test_data_sources_are_joined(self, planner):
        assembled, _ = compile_query(
            planner, columns=[{"field": "item_name"}], data_sources=["suppliers"], tenant_id="tenant-a"
        )
        assert assembled.plan.table_names == ["items", "item_suppliers", "suppliers"]

    def test_unknown_data_source(self, planner):
        with pytest.raises(UnresolvableFieldError) as exc_info:
            compile_query(planner, columns=[{"field": "item_name"}], data_sources=["invoices"], tenant_id="t")
        assert exc_info.value.table == "invoices"


class TestParameterBinding:
    """Request values never reach the SQL text"""

    def test_filter_values_are_bound(self, planner):
        hostile = "x'; DROP TABLE items; --"
        _, compiled = compile_query(
            planner,
            columns=[{"field": "item_name"}],
            filters=[{"field": "item_name", "operator": "equals", "value": hostile}],
            tenant_id="tenant-a",
        )
        assert hostile not in str(compiled)
        assert hostile in compiled.params.values()

    def test_tenant_is_bound(self, planner):
        _, compiled = compile_query(planner, columns=[{"field": "item_name"}], tenant_id="tenant-a")
        assert "tenant-a" not in str(compiled)
        assert "tenant-a" in compiled.params.values()
        assert "items.tenant_id" in str(compiled)
        assert "items.is_active" in str(compiled)

    def test_missing_tenant_rejected(self, planner):
        with pytest.raises(MissingTenantError):
            compile_query(planner, columns=[{"field": "item_name"}])

    def test_tenant_optional_when_not_required(self):
        planner = QueryPlanner(DEFAULT_CATALOG, StoreBase.metadata, require_tenant=False)
        _, compiled = compile_query(planner, columns=[{"field": "item_name"}])
        assert "items.tenant_id" not in str(compiled)

    def test_validate_does_not_need_tenant(self, planner):
        assembled = planner.validate(ReportDefinition(columns=[{"field": "item_name"}]))
        assert assembled.plan.table_names == ["items"]


class TestAggregationRules:
    """Grouping consistency"""

    def test_ungrouped_column_beside_aggregate_rejected(self, planner):
        with pytest.raises(InvalidAggregationError) as exc_info:
            compile_query(
                planner,
                columns=[{"field": "inventory_quantity", "aggregation": "sum"}, {"field": "user_name"}],
                tenant_id="tenant-a",
            )
        assert exc_info.value.field == "user_name"

    def test_grouped_column_beside_aggregate_accepted(self, planner):
        assembled, compiled = compile_query(
            planner,
            columns=[{"field": "inventory_quantity", "aggregation": "sum"}, {"field": "user_name"}],
            grouping=["user_name"],
            tenant_id="tenant-a",
        )
        sql = str(compiled)
        assert "sum(inventory_entries.quantity)" in sql
        assert "GROUP BY users.name" in sql
        assert assembled.columns[0].label == "Entry Quantity (sum)"

    def test_grouping_requires_selected_columns_grouped(self, planner):
        with pytest.raises(InvalidAggregationError):
            compile_query(
                planner,
                columns=[{"field": "item_name"}, {"field": "item_category"}],
                grouping=["item_category"],
                tenant_id="tenant-a",
            )

    def test_sort_on_ungrouped_field_in_aggregated_query(self, planner):
        with pytest.raises(InvalidAggregationError):
            compile_query(
                planner,
                columns=[{"field": "quantity", "aggregation": "count", "alias": "entries"}],
                sorting=[{"field": "item_name"}],
                tenant_id="tenant-a",
            )

    def test_sort_by_alias(self, planner):
        _, compiled = compile_query(
            planner,
            columns=[{"field": "item_category"}, {"field": "quantity", "aggregation": "sum", "alias": "qty"}],
            grouping=["item_category"],
            sorting=[{"field": "qty", "direction": "desc"}],
            tenant_id="tenant-a",
        )
        assert "ORDER BY sum(inventory_entries.quantity) IS NULL, sum(inventory_entries.quantity) DESC" in str(
            compiled
        )

    def test_alias_naming_another_field_rejected(self, planner):
        with pytest.raises(InvalidDefinitionError) as exc_info:
            compile_query(
                planner,
                columns=[{"field": "item_name", "alias": "user_name"}],
                sorting=[{"field": "user_name"}],
                tenant_id="tenant-a",
            )
        assert exc_info.value.field == "item_name"

    def test_alias_equal_to_own_field_allowed(self, planner):
        assembled, _ = compile_query(
            planner, columns=[{"field": "item_name", "alias": "item_name"}], tenant_id="tenant-a"
        )
        assert [column.key for column in assembled.columns] == ["item_name"]

    def test_duplicate_column_keys_rejected(self):
        with pytest.raises(ValueError):
            ReportRequest(columns=[{"field": "item_name"}, {"field": "item_name"}], tenant_id="tenant-a")

    def test_same_field_twice_with_alias(self, planner):
        assembled, _ = compile_query(
            planner,
            columns=[
                {"field": "quantity", "aggregation": "min", "alias": "smallest"},
                {"field": "quantity", "aggregation": "max", "alias": "largest"},
            ],
            tenant_id="tenant-a",
        )
        assert [column.key for column in assembled.columns] == ["smallest", "largest"]


class TestFilters:
    """Filter clause validation"""

    def test_unknown_filter_field(self, planner):
        with pytest.raises(UnknownFieldError):
            compile_query(
                planner,
                columns=[{"field": "item_name"}],
                filters=[{"field": "colour", "value": "red"}],
                tenant_id="tenant-a",
            )

    def test_between_needs_two_values(self, planner):
        with pytest.raises(InvalidFilterError):
            compile_query(
                planner,
                columns=[{"field": "item_name"}],
                filters=[{"field": "item_min_stock", "operator": "between", "value": [1]}],
                tenant_id="tenant-a",
            )

    def test_in_needs_a_list(self, planner):
        with pytest.raises(InvalidFilterError):
            compile_query(
                planner,
                columns=[{"field": "item_name"}],
                filters=[{"field": "item_name", "operator": "in", "value": "Flour"}],
                tenant_id="tenant-a",
            )

    @pytest.mark.parametrize(
        "operator,value",
        [
            ("equals", ["Sugar", "Flour"]),
            ("not_equals", ["Sugar"]),
            ("greater", {"a": 1}),
            ("less_equal", [3]),
            ("contains", ["Flo"]),
        ],
    )
    def test_single_value_operators_reject_lists_and_objects(self, planner, operator, value):
        with pytest.raises(InvalidFilterError) as exc_info:
            compile_query(
                planner,
                columns=[{"field": "item_name"}],
                filters=[{"field": "item_name", "operator": operator, "value": value}],
                tenant_id="tenant-a",
            )
        assert exc_info.value.field == "item_name"

    def test_in_rejects_nested_values(self, planner):
        with pytest.raises(InvalidFilterError):
            compile_query(
                planner,
                columns=[{"field": "item_name"}],
                filters=[{"field": "item_name", "operator": "in", "value": [["Flour"], "Sugar"]}],
                tenant_id="tenant-a",
            )

    def test_unknown_operator_rejected_by_schema(self):
        with pytest.raises(ValueError):
            ReportRequest(
                columns=[{"field": "item_name"}],
                filters=[{"field": "item_name", "operator": "sounds_like", "value": "x"}],
            )


class TestOrdering:
    """Default and explicit ordering"""

    def test_default_sort_is_catalog_default(self, planner):
        _, compiled = compile_query(planner, columns=[{"field": "item_name"}], tenant_id="tenant-a")
        assert "ORDER BY items.created_at IS NULL, items.created_at DESC" in str(compiled)

    def test_grouped_default_sort_is_first_group(self, planner):
        _, compiled = compile_query(
            planner,
            columns=[{"field": "item_category"}, {"field": "quantity", "aggregation": "sum", "alias": "qty"}],
            grouping=["item_category"],
            tenant_id="tenant-a",
        )
        assert "ORDER BY items.category IS NULL, items.category ASC" in str(compiled)

    def test_page_applies_limit_and_offset(self, planner):
        _, compiled = compile_query(
            planner, columns=[{"field": "item_name"}], page={"offset": 10, "limit": 5}, tenant_id="tenant-a"
        )
        assert "LIMIT" in str(compiled)
        assert "OFFSET" in str(compiled)


class TestConfigurationChecks:
    """Startup validation against the store schema"""

    def test_field_on_missing_column(self):
        config = DEFAULT_CATALOG.model_copy(
            update={
                "fields": DEFAULT_CATALOG.fields
                + [FieldDescriptor(id="item_colour", label="Colour", owner_table="items", column="colour")]
            }
        )
        with pytest.raises(CatalogConfigError) as exc_info:
            QueryPlanner(config, StoreBase.metadata)
        assert exc_info.value.field == "item_colour"

    def test_calculated_field_on_wrong_table(self):
        config = DEFAULT_CATALOG.model_copy(
            update={
                "fields": DEFAULT_CATALOG.fields
                + [FieldDescriptor(id="odd_value", label="Odd", owner_table="users", calculated="line_value")]
            }
        )
        with pytest.raises(CatalogConfigError):
            QueryPlanner(config, StoreBase.metadata)

    def test_graph_table_missing_from_store(self):
        document = DEFAULT_CATALOG.model_dump()
        document["graph"]["tables"].append(
            {
                "name": "warehouses",
                "depends_on": ["items"],
                "join_keys": [{"column": "item_id", "parent_table": "items", "parent_column": "id"}],
            }
        )
        config = DEFAULT_CATALOG.model_validate(document)
        with pytest.raises(CatalogConfigError) as exc_info:
            QueryPlanner(config, StoreBase.metadata)
        assert exc_info.value.table == "warehouses"

    def test_cyclic_graph_fails_at_startup(self):
        document = DEFAULT_CATALOG.model_dump()
        for table in document["graph"]["tables"]:
            if table["name"] == "inventory_entries":
                table["depends_on"] = {"items", "users"}
                table["join_keys"] = list(table["join_keys"]) + [
                    {"column": "user_id", "parent_table": "users", "parent_column": "id"}
                ]
        config = DEFAULT_CATALOG.model_validate(document)
        with pytest.raises(CyclicDependencyError):
            QueryPlanner(config, StoreBase.metadata)
