"""Field catalog for dynamic report building."""

from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping

from reportbuilder.catalog.schemas import CatalogConfig, FieldDescriptor
from reportbuilder.core.exceptions import UnknownFieldError


class FieldCatalog:
    """Read-only registry of reportable fields, keyed by field id."""

    def __init__(self, config: CatalogConfig):
        fields: Dict[str, FieldDescriptor] = {descriptor.id: descriptor for descriptor in config.fields}
        self._fields: Mapping[str, FieldDescriptor] = MappingProxyType(fields)

    def lookup(self, field_id: str) -> FieldDescriptor:
        """Get the descriptor for a field id; never falls back to a default."""
        try:
            return self._fields[field_id]
        except KeyError:
            raise UnknownFieldError(field_id) from None

    def available_fields(self) -> List[FieldDescriptor]:
        """All fields, grouped by category and then label."""
        return sorted(self._fields.values(), key=lambda d: (d.category, d.label))

    def fields_for_table(self, table: str) -> List[FieldDescriptor]:
        return [descriptor for descriptor in self.available_fields() if descriptor.owner_table == table]

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)
