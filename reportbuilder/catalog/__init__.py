"""
Report field catalog.

Static configuration describing which fields can be reported on, which table
owns each of them, and how the tables depend on one another for joining.
"""

from .loader import load_catalog_config, parse_catalog
from .registry import FieldCatalog
from .schemas import (
    AggregationKind,
    CalculatedField,
    CatalogConfig,
    DataType,
    FieldDescriptor,
    JoinKey,
    SortDirection,
    TableGraphConfig,
    TableNode,
)

__all__ = [
    "FieldCatalog",
    "load_catalog_config",
    "parse_catalog",
    "AggregationKind",
    "CalculatedField",
    "CatalogConfig",
    "DataType",
    "FieldDescriptor",
    "JoinKey",
    "SortDirection",
    "TableGraphConfig",
    "TableNode",
]
