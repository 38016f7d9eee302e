# reportbuilder/core/exceptions.py
"""Error taxonomy for report building and execution."""

from typing import Any, Dict, Optional, Sequence


class ReportError(Exception):
    """Base class for report errors. Carries the offending field/table."""

    def __init__(self, message: str, field: Optional[str] = None, table: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.table = table

    def to_dict(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"error": type(self).__name__, "message": self.message}
        if self.field is not None:
            detail["field"] = self.field
        if self.table is not None:
            detail["table"] = self.table
        return detail


class CatalogConfigError(ReportError):
    """The field catalog or table graph document is malformed. Fatal at startup."""


class CyclicDependencyError(CatalogConfigError):
    """The table dependency graph contains a cycle. Fatal at startup."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__(
            f"Table dependency graph contains a cycle: {' -> '.join(self.cycle)}",
            table=self.cycle[0] if self.cycle else None,
        )


class UnknownFieldError(ReportError):
    def __init__(self, field: str):
        super().__init__(f"Unknown report field '{field}'", field=field)


class UnresolvableFieldError(ReportError):
    def __init__(self, table: str, field: Optional[str] = None):
        if field:
            message = f"Field '{field}' lives on table '{table}', which cannot be joined from the base table"
        else:
            message = f"Data source '{table}' cannot be joined from the base table"
        super().__init__(message, field=field, table=table)


class InvalidAggregationError(ReportError):
    pass


class InvalidFilterError(ReportError):
    pass


class InvalidDefinitionError(ReportError):
    """A report definition is malformed beyond a single filter or aggregation."""


class MissingTenantError(ReportError):
    def __init__(self, table: Optional[str] = None):
        super().__init__("A tenant id is required to run reports", table=table)


class ResultTooLargeError(ReportError):
    def __init__(self, max_rows: int, requested: Optional[int] = None):
        self.max_rows = max_rows
        if requested is not None:
            message = f"Requested page size {requested} exceeds the maximum of {max_rows} rows"
        else:
            message = f"Report returned more than {max_rows} rows; request a page to paginate"
        super().__init__(message)


class ExecutionError(ReportError):
    """
    The storage engine failed while running an assembled query.

    The client-facing message is generic; the driver error (which carries the
    SQL and its parameters) stays on ``original`` for server-side logs.
    """

    def __init__(self, original: Exception):
        self.original = original
        super().__init__("Report query failed in the storage engine")
