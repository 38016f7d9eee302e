"""Default report catalog for the inventory store schema."""

from reportbuilder.catalog.schemas import (
    CalculatedField,
    CatalogConfig,
    DataType,
    FieldDescriptor,
    JoinKey,
    SortDirection,
    TableGraphConfig,
    TableNode,
)

# ===== TABLE GRAPH =====
# items is the root; entries and supplier links hang off it, and the
# user/supplier tables are only reachable through those.

DEFAULT_GRAPH = TableGraphConfig(
    base_table="items",
    tenant_column="tenant_id",
    active_column="is_active",
    tables=[
        TableNode(name="items"),
        TableNode(
            name="inventory_entries",
            depends_on=frozenset({"items"}),
            join_keys=(JoinKey(column="item_id", parent_table="items", parent_column="id"),),
        ),
        TableNode(
            name="users",
            depends_on=frozenset({"inventory_entries"}),
            join_keys=(JoinKey(column="id", parent_table="inventory_entries", parent_column="user_id"),),
        ),
        TableNode(
            name="item_suppliers",
            depends_on=frozenset({"items"}),
            join_keys=(JoinKey(column="item_id", parent_table="items", parent_column="id"),),
        ),
        TableNode(
            name="suppliers",
            depends_on=frozenset({"item_suppliers"}),
            join_keys=(JoinKey(column="id", parent_table="item_suppliers", parent_column="supplier_id"),),
        ),
    ],
)


# ===== FIELDS =====

_ITEM_FIELDS = [
    FieldDescriptor(id="item_name", label="Item Name", owner_table="items", column="name",
                    category="Items", description="Name of the inventory item"),
    FieldDescriptor(id="item_category", label="Category", owner_table="items", column="category",
                    category="Items"),
    FieldDescriptor(id="item_unit", label="Unit", owner_table="items", column="unit", category="Items"),
    FieldDescriptor(id="item_description", label="Description", owner_table="items", column="description",
                    category="Items"),
    FieldDescriptor(id="item_barcode", label="Barcode", owner_table="items", column="barcode", category="Items"),
    FieldDescriptor(id="item_min_stock", label="Minimum Stock", owner_table="items", column="min_stock",
                    data_type=DataType.NUMBER, category="Items"),
    FieldDescriptor(id="item_is_active", label="Item Active", owner_table="items", column="is_active",
                    data_type=DataType.BOOLEAN, category="Items"),
    FieldDescriptor(id="item_created_at", label="Item Created", owner_table="items", column="created_at",
                    data_type=DataType.DATE, category="Items"),
    FieldDescriptor(id="current_stock", label="Current Stock", owner_table="items",
                    calculated=CalculatedField.CURRENT_STOCK, data_type=DataType.NUMBER, category="Items",
                    description="Total IN entries minus total OUT entries for the item"),
]

_ENTRY_FIELDS = [
    FieldDescriptor(id="quantity", label="Quantity", owner_table="inventory_entries", column="quantity",
                    data_type=DataType.NUMBER, category="Inventory"),
    FieldDescriptor(id="unit_price", label="Unit Price", owner_table="inventory_entries", column="unit_price",
                    data_type=DataType.CURRENCY, category="Inventory"),
    FieldDescriptor(id="total_value", label="Total Value", owner_table="inventory_entries",
                    calculated=CalculatedField.LINE_VALUE, data_type=DataType.CURRENCY, category="Inventory",
                    description="Entry quantity multiplied by its unit price"),
    FieldDescriptor(id="entry_date", label="Entry Date", owner_table="inventory_entries", column="created_at",
                    data_type=DataType.DATE, category="Inventory"),
    FieldDescriptor(id="entry_type", label="Entry Type", owner_table="inventory_entries", column="type",
                    category="Inventory"),
    FieldDescriptor(id="inventory_quantity", label="Entry Quantity", owner_table="inventory_entries",
                    column="quantity", data_type=DataType.NUMBER, category="Inventory"),
    FieldDescriptor(id="inventory_type", label="Transaction Type", owner_table="inventory_entries",
                    column="type", category="Inventory"),
    FieldDescriptor(id="inventory_unit_price", label="Entry Unit Price", owner_table="inventory_entries",
                    column="unit_price", data_type=DataType.CURRENCY, category="Inventory"),
    FieldDescriptor(id="inventory_note", label="Note", owner_table="inventory_entries", column="note",
                    category="Inventory"),
    FieldDescriptor(id="inventory_batch_number", label="Batch Number", owner_table="inventory_entries",
                    column="batch_number", category="Inventory"),
    FieldDescriptor(id="inventory_expiry_date", label="Expiry Date", owner_table="inventory_entries",
                    column="expiry_date", data_type=DataType.DATE, category="Inventory"),
    FieldDescriptor(id="inventory_created_at", label="Transaction Date", owner_table="inventory_entries",
                    column="created_at", data_type=DataType.DATE, category="Inventory"),
]

_USER_FIELDS = [
    FieldDescriptor(id="user_name", label="User Name", owner_table="users", column="name", category="Users"),
    FieldDescriptor(id="user_email", label="User Email", owner_table="users", column="email", category="Users"),
    FieldDescriptor(id="user_role", label="User Role", owner_table="users", column="role", category="Users"),
    FieldDescriptor(id="user_active", label="User Active", owner_table="users", column="active",
                    data_type=DataType.BOOLEAN, category="Users"),
    FieldDescriptor(id="user_created_at", label="User Since", owner_table="users", column="created_at",
                    data_type=DataType.DATE, category="Users"),
]

_SUPPLIER_FIELDS = [
    FieldDescriptor(id="supplier_name", label="Supplier Name", owner_table="suppliers", column="name",
                    category="Suppliers"),
    FieldDescriptor(id="supplier_contact_name", label="Contact Name", owner_table="suppliers",
                    column="contact_name", category="Suppliers"),
    FieldDescriptor(id="supplier_email", label="Supplier Email", owner_table="suppliers", column="email",
                    category="Suppliers"),
    FieldDescriptor(id="supplier_phone", label="Phone", owner_table="suppliers", column="phone_number",
                    category="Suppliers"),
    FieldDescriptor(id="supplier_address", label="Address", owner_table="suppliers", column="address",
                    category="Suppliers"),
    FieldDescriptor(id="supplier_is_active", label="Supplier Active", owner_table="suppliers",
                    column="is_active", data_type=DataType.BOOLEAN, category="Suppliers"),
    FieldDescriptor(id="item_supplier_unit_price", label="Supplier Unit Price", owner_table="item_suppliers",
                    column="unit_price", data_type=DataType.CURRENCY, category="Suppliers"),
    FieldDescriptor(id="item_supplier_preferred", label="Preferred Supplier", owner_table="item_suppliers",
                    column="preferred_supplier", data_type=DataType.BOOLEAN, category="Suppliers"),
]

DEFAULT_CATALOG = CatalogConfig(
    fields=_ITEM_FIELDS + _ENTRY_FIELDS + _USER_FIELDS + _SUPPLIER_FIELDS,
    graph=DEFAULT_GRAPH,
    default_sort_field="item_created_at",
    default_sort_direction=SortDirection.DESC,
)
