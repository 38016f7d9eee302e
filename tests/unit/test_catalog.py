"""
Unit tests for the field catalog and catalog document loading.
"""

import json

import pytest
from pydantic import ValidationError

from reportbuilder.catalog import (
    FieldCatalog,
    FieldDescriptor,
    JoinKey,
    TableNode,
    load_catalog_config,
    parse_catalog,
)
from reportbuilder.catalog.defaults import DEFAULT_CATALOG
from reportbuilder.core.exceptions import CatalogConfigError, UnknownFieldError


def minimal_document(**overrides):
    document = {
        "fields": [
            {"id": "item_name", "label": "Item Name", "owner_table": "items", "column": "name"},
            {"id": "entry_qty", "label": "Quantity", "owner_table": "entries", "column": "quantity"},
        ],
        "graph": {
            "base_table": "items",
            "tables": [
                {"name": "items"},
                {
                    "name": "entries",
                    "depends_on": ["items"],
                    "join_keys": [{"column": "item_id", "parent_table": "items", "parent_column": "id"}],
                },
            ],
        },
    }
    document.update(overrides)
    return document


class TestFieldCatalog:
    """Lookup and listing behaviour of the registry"""

    @pytest.fixture
    def catalog(self):
        return FieldCatalog(DEFAULT_CATALOG)

    def test_lookup_known_field(self, catalog):
        descriptor = catalog.lookup("supplier_name")
        assert descriptor.owner_table == "suppliers"
        assert descriptor.label == "Supplier Name"

    def test_lookup_unknown_field_raises(self, catalog):
        with pytest.raises(UnknownFieldError) as exc_info:
            catalog.lookup("no_such_field")
        assert exc_info.value.field == "no_such_field"

    def test_lookup_never_defaults(self, catalog):
        with pytest.raises(UnknownFieldError):
            catalog.lookup("")

    def test_available_fields_sorted_by_category_then_label(self, catalog):
        fields = catalog.available_fields()
        keys = [(descriptor.category, descriptor.label) for descriptor in fields]
        assert keys == sorted(keys)
        assert len(fields) == len(catalog)

    def test_fields_for_table(self, catalog):
        fields = catalog.fields_for_table("users")
        assert fields
        assert {descriptor.owner_table for descriptor in fields} == {"users"}

    def test_contains(self, catalog):
        assert "item_name" in catalog
        assert "missing" not in catalog


class TestCatalogDocuments:
    """Validation of catalog documents at load time"""

    def test_parse_valid_document(self):
        config = parse_catalog(minimal_document())
        assert config.graph.base_table == "items"
        assert config.graph.table("entries").depends_on == frozenset({"items"})

    def test_parse_json_text(self):
        config = parse_catalog(json.dumps(minimal_document()))
        assert [field.id for field in config.fields] == ["item_name", "entry_qty"]

    def test_duplicate_field_ids_rejected(self):
        document = minimal_document()
        document["fields"].append(dict(document["fields"][0]))
        with pytest.raises(CatalogConfigError) as exc_info:
            parse_catalog(document)
        assert "item_name" in str(exc_info.value)

    def test_duplicate_table_names_rejected(self):
        document = minimal_document()
        document["graph"]["tables"].append({"name": "items"})
        with pytest.raises(CatalogConfigError):
            parse_catalog(document)

    def test_unknown_dependency_rejected(self):
        document = minimal_document()
        document["graph"]["tables"].append(
            {
                "name": "users",
                "depends_on": ["ghosts"],
                "join_keys": [{"column": "id", "parent_table": "ghosts", "parent_column": "user_id"}],
            }
        )
        with pytest.raises(CatalogConfigError):
            parse_catalog(document)

    def test_base_table_must_be_declared(self):
        document = minimal_document()
        document["graph"]["base_table"] = "orders"
        with pytest.raises(CatalogConfigError):
            parse_catalog(document)

    def test_default_sort_field_must_live_on_base_table(self):
        with pytest.raises(CatalogConfigError):
            parse_catalog(minimal_document(default_sort_field="entry_qty"))

    def test_field_needs_column_or_expression(self):
        with pytest.raises(ValidationError):
            FieldDescriptor(id="broken", label="Broken", owner_table="items")
        with pytest.raises(ValidationError):
            FieldDescriptor(id="broken", label="Broken", owner_table="items", column="x", calculated="line_value")

    def test_join_keys_must_match_dependencies(self):
        with pytest.raises(ValidationError):
            TableNode(name="entries", depends_on=frozenset({"items"}))
        with pytest.raises(ValidationError):
            TableNode(
                name="entries",
                join_keys=(JoinKey(column="item_id", parent_table="items", parent_column="id"),),
            )

    def test_table_cannot_depend_on_itself(self):
        with pytest.raises(ValidationError):
            TableNode(
                name="items",
                depends_on=frozenset({"items"}),
                join_keys=(JoinKey(column="parent_id", parent_table="items", parent_column="id"),),
            )


class TestCatalogLoading:
    """Loading the catalog from disk"""

    def test_default_catalog_when_no_path(self):
        assert load_catalog_config() is DEFAULT_CATALOG

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(DEFAULT_CATALOG.model_dump_json(), encoding="utf-8")
        config = load_catalog_config(path)
        assert config == DEFAULT_CATALOG

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(CatalogConfigError):
            load_catalog_config(tmp_path / "missing.json")

    def test_malformed_json_raises(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogConfigError):
            load_catalog_config(str(path))
