"""
Unit tests for join graph resolution.
"""

from itertools import combinations

import pytest

from reportbuilder.catalog.defaults import DEFAULT_GRAPH
from reportbuilder.catalog.schemas import JoinKey, TableGraphConfig, TableNode
from reportbuilder.core.exceptions import CyclicDependencyError, UnresolvableFieldError
from reportbuilder.query.resolver import JoinGraphResolver


def make_graph(dependencies, base="a"):
    """Graph from {table: [parents]}; join keys follow a <parent>_id convention."""
    return TableGraphConfig(
        base_table=base,
        tables=[
            TableNode(
                name=name,
                depends_on=frozenset(parents),
                join_keys=tuple(
                    JoinKey(column=f"{parent}_id", parent_table=parent, parent_column="id") for parent in parents
                ),
            )
            for name, parents in dependencies.items()
        ],
    )


class TestJoinGraphResolver:
    """Join plans over the inventory graph"""

    @pytest.fixture
    def resolver(self):
        return JoinGraphResolver(DEFAULT_GRAPH)

    def test_base_table_only(self, resolver):
        assert resolver.resolve([]).table_names == ["items"]
        assert resolver.resolve(["items"]).table_names == ["items"]

    def test_pulls_in_dependency_chain(self, resolver):
        plan = resolver.resolve(["users"])
        assert plan.table_names == ["items", "inventory_entries", "users"]

    def test_independent_branches_are_unioned(self, resolver):
        plan = resolver.resolve(["suppliers", "users"])
        assert plan.table_names == ["items", "inventory_entries", "item_suppliers", "suppliers", "users"]

    def test_no_table_appears_twice(self, resolver):
        plan = resolver.resolve(["users", "inventory_entries", "suppliers", "item_suppliers", "users"])
        assert len(plan.table_names) == len(set(plan.table_names))

    def test_every_table_follows_its_dependencies(self, resolver):
        tables = resolver.tables
        for size in range(len(tables) + 1):
            for subset in combinations(tables, size):
                plan = resolver.resolve(subset)
                position = {name: index for index, name in enumerate(plan.table_names)}
                assert plan.table_names[0] == "items"
                for node in plan:
                    for parent in node.depends_on:
                        assert position[parent] < position[node.name]

    def test_resolution_is_deterministic(self, resolver):
        forward = resolver.resolve(["users", "suppliers", "item_suppliers"])
        backward = resolver.resolve(["item_suppliers", "suppliers", "users"])
        assert forward == backward

    def test_dependencies_of(self, resolver):
        assert resolver.dependencies_of("suppliers") == frozenset({"items", "item_suppliers", "suppliers"})

    def test_unknown_table_is_unresolvable(self, resolver):
        with pytest.raises(UnresolvableFieldError) as exc_info:
            resolver.resolve(["warehouses"], {"warehouses": "warehouse_name"})
        assert exc_info.value.table == "warehouses"
        assert exc_info.value.field == "warehouse_name"

    def test_unknown_data_source_has_no_field(self, resolver):
        with pytest.raises(UnresolvableFieldError) as exc_info:
            resolver.resolve(["warehouses"])
        assert exc_info.value.field is None


class TestGraphShapes:
    """Graphs other than the inventory one"""

    def test_diamond_dependency(self):
        resolver = JoinGraphResolver(make_graph({"a": [], "b": ["a"], "c": ["a"], "d": ["b", "c"]}))
        assert resolver.resolve(["d"]).table_names == ["a", "b", "c", "d"]

    def test_cycle_detected_at_construction(self):
        graph = make_graph({"a": [], "b": ["c"], "c": ["b"]})
        with pytest.raises(CyclicDependencyError) as exc_info:
            JoinGraphResolver(graph)
        assert exc_info.value.cycle == ["b", "c", "b"]

    def test_longer_cycle_detected(self):
        graph = make_graph({"a": [], "b": ["a", "d"], "c": ["b"], "d": ["c"]})
        with pytest.raises(CyclicDependencyError) as exc_info:
            JoinGraphResolver(graph)
        assert set(exc_info.value.cycle) == {"b", "c", "d"}

    def test_table_detached_from_base_is_unresolvable(self):
        resolver = JoinGraphResolver(make_graph({"a": [], "b": ["a"], "x": [], "y": ["x"]}))
        assert resolver.tables == ["a", "b"]
        with pytest.raises(UnresolvableFieldError):
            resolver.resolve(["y"])
        with pytest.raises(UnresolvableFieldError):
            resolver.resolve(["x"])
