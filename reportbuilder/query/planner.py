"""Ties catalog, join resolver and assembler together. Built once at startup."""

import logging
from typing import Dict, Iterable

from sqlalchemy import MetaData

from reportbuilder.catalog.registry import FieldCatalog
from reportbuilder.catalog.schemas import CatalogConfig
from reportbuilder.query.builder import QueryAssembler
from reportbuilder.query.resolver import JoinGraphResolver
from reportbuilder.query.schemas import AssembledQuery, JoinPlan, ReportDefinition, ReportRequest

logger = logging.getLogger(__name__)


class QueryPlanner:
    """
    Plans and assembles report queries for one catalog over one store schema.

    Construction validates the whole configuration: a cyclic table graph, a
    field pointing at a missing column or a broken join key all fail here,
    before the service accepts requests.
    """

    def __init__(self, config: CatalogConfig, metadata: MetaData, require_tenant: bool = True):
        self.config = config
        self.catalog = FieldCatalog(config)
        self.resolver = JoinGraphResolver(config.graph)
        self.assembler = QueryAssembler(
            self.catalog,
            metadata,
            config.graph,
            require_tenant=require_tenant,
            default_sort_field=config.default_sort_field,
            default_sort_direction=config.default_sort_direction,
        )
        logger.info(
            "Report planner ready: %d fields over %d tables (base '%s')",
            len(self.catalog),
            len(self.resolver.tables),
            config.graph.base_table,
        )

    def required_tables(self, request: ReportDefinition) -> Dict[str, str]:
        """
        Every table the request touches, mapped to the first field that needs it.

        Explicit data sources map to themselves.
        """
        origins: Dict[str, str] = {}

        def require(field_ids: Iterable[str]) -> None:
            for field_id in field_ids:
                origins.setdefault(self.catalog.lookup(field_id).owner_table, field_id)

        require(column.field for column in request.columns)
        require(clause.field for clause in request.filters if not clause.is_empty())
        require(sort.field for sort in request.sorting if not self._is_column_key(request, sort.field))
        require(request.grouping)
        for table in request.data_sources:
            origins.setdefault(table, table)
        return origins

    def plan(self, request: ReportDefinition) -> JoinPlan:
        origins = self.required_tables(request)
        fields = {table: field for table, field in origins.items() if field != table}
        return self.resolver.resolve(origins, fields)

    def prepare(self, request: ReportRequest) -> AssembledQuery:
        """Plan and assemble one request."""
        return self.assembler.assemble(request, self.plan(request))

    def validate(self, definition: ReportDefinition) -> AssembledQuery:
        """Check a definition would assemble, without needing a tenant. Used before saving reports."""
        request = ReportRequest.from_definition(definition)
        return self.assembler.assemble(request, self.plan(request), enforce_tenant=False)

    @staticmethod
    def _is_column_key(request: ReportDefinition, name: str) -> bool:
        """Sorts may name a column alias instead of a catalog field."""
        return any(column.alias == name for column in request.columns)
