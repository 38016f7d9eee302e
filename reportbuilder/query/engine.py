"""Report execution: runs assembled queries through a storage handle and enforces the row cap."""

import logging
import time
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Select

from reportbuilder.core.exceptions import ExecutionError, ResultTooLargeError
from reportbuilder.query.planner import QueryPlanner
from reportbuilder.query.schemas import ReportRequest, ReportResult
from reportbuilder.store.storage import ReportStorage

logger = logging.getLogger(__name__)


class ReportEngine:
    """Entry point for building reports against one storage handle."""

    def __init__(self, planner: QueryPlanner, storage: ReportStorage, max_rows: int = 10000):
        self.planner = planner
        self.storage = storage
        self.max_rows = max_rows

    def build_report(self, request: ReportRequest) -> ReportResult:
        """
        Resolve, assemble and run a report request.

        Without a page at most ``max_rows`` rows are returned; a larger result
        raises ``ResultTooLargeError`` rather than being truncated.
        """
        if request.page is not None and request.page.limit > self.max_rows:
            raise ResultTooLargeError(self.max_rows, requested=request.page.limit)

        assembled = self.planner.prepare(request)
        statement = assembled.statement
        if request.page is None:
            statement = statement.limit(self.max_rows + 1)

        start = time.perf_counter()
        try:
            rows = self.storage.fetch(statement)
        except SQLAlchemyError as exc:
            logger.error("Report query failed over tables %s: %s", assembled.plan.table_names, exc)
            raise ExecutionError(exc) from exc
        elapsed_ms = (time.perf_counter() - start) * 1000

        if len(rows) > self.max_rows:
            raise ResultTooLargeError(self.max_rows)

        logger.debug("Report returned %d rows in %.1f ms", len(rows), elapsed_ms)
        return ReportResult(
            columns=assembled.columns,
            rows=tuple(rows),
            sql=self.render_sql(assembled.statement),
            execution_time_ms=round(elapsed_ms, 3),
        )

    def preview(self, request: ReportRequest) -> Dict[str, Any]:
        """Compiled SQL, bound parameters and join plan for a request, without running it."""
        assembled = self.planner.prepare(request)
        compiled = assembled.statement.compile(dialect=self.storage.dialect)
        return {
            "sql": str(compiled),
            "params": dict(compiled.params),
            "tables": assembled.plan.table_names,
            "columns": [column.to_dict() for column in assembled.columns],
        }

    def render_sql(self, statement: Select) -> str:
        return str(statement.compile(dialect=self.storage.dialect))
