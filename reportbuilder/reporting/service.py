# reportbuilder/reporting/service.py

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from reportbuilder.catalog.schemas import FieldDescriptor
from reportbuilder.core.exceptions import ExecutionError, InvalidDefinitionError, ReportError
from reportbuilder.query.engine import ReportEngine
from reportbuilder.query.planner import QueryPlanner
from reportbuilder.query.schemas import ReportDefinition, ReportRequest, ReportResult
from reportbuilder.reporting.dao import ExecutionLogDAO, ReportDAO
from reportbuilder.reporting.exporters import EXPORTERS, ExportFormat
from reportbuilder.reporting.models import SavedReport
from reportbuilder.reporting.schemas import (
    ExecutionLogRead,
    ReportCreate,
    ReportRead,
    ReportUpdate,
    RunSavedReportRequest,
)
from reportbuilder.store.storage import ReportStorage

logger = logging.getLogger(__name__)


class ReportService:
    """Saved report management plus ad-hoc execution, preview and export."""

    def __init__(
        self,
        report_dao: ReportDAO,
        execution_log_dao: ExecutionLogDAO,
        planner: QueryPlanner,
        storage: ReportStorage,
        max_rows: int = 10000,
    ):
        self.report_dao = report_dao
        self.execution_log_dao = execution_log_dao
        self.planner = planner
        self.engine = ReportEngine(planner, storage, max_rows=max_rows)

    # ===== FIELD CATALOG =====

    def get_available_fields(self) -> List[FieldDescriptor]:
        return self.planner.catalog.available_fields()

    # ===== CORE CRUD OPERATIONS =====

    def get_all(self, tenant_id: Optional[str] = None) -> List[ReportRead]:
        return [ReportRead.model_validate(report) for report in self.report_dao.get_active(tenant_id)]

    def get_by_id(self, report_id: int) -> Optional[ReportRead]:
        report = self.report_dao.get_active_by_id(report_id)
        return ReportRead.model_validate(report) if report else None

    def create(self, report_data: ReportCreate) -> ReportRead:
        """Create a saved report. The definition must assemble before it is stored."""
        self.planner.validate(report_data.definition)
        report = self.report_dao.create(
            name=report_data.name,
            description=report_data.description,
            tenant_id=report_data.tenant_id,
            created_by=report_data.created_by,
            definition=report_data.definition.model_dump(mode="json"),
        )
        logger.info("Created report %s '%s' for tenant %s", report.id, report.name, report.tenant_id)
        return ReportRead.model_validate(report)

    def update(self, report_id: int, report_data: ReportUpdate) -> Optional[ReportRead]:
        report = self.report_dao.get_active_by_id(report_id)
        if not report:
            return None

        changes: Dict[str, Any] = report_data.model_dump(exclude_none=True, exclude={"definition"})
        if report_data.definition is not None:
            self.planner.validate(report_data.definition)
            changes["definition"] = report_data.definition.model_dump(mode="json")

        return ReportRead.model_validate(self.report_dao.update(report, **changes))

    def delete(self, report_id: int) -> bool:
        """Soft delete; execution history is kept."""
        if not self.report_dao.get_active_by_id(report_id):
            return False
        return self.report_dao.soft_delete(report_id)

    # ===== REPORT EXECUTION =====

    def execute(self, request: ReportRequest) -> ReportResult:
        return self.engine.build_report(request)

    def preview(self, request: ReportRequest) -> Dict[str, Any]:
        return self.engine.preview(request)

    def export(self, request: ReportRequest, export_format: ExportFormat) -> Tuple[Any, str, str]:
        """Run a request and render it. Returns (content, media type, file extension)."""
        exporter = EXPORTERS[export_format]
        result = self.engine.build_report(request)
        return exporter.render(result), exporter.media_type, exporter.extension

    def run_saved_report(self, report_id: int, run_request: RunSavedReportRequest) -> Optional[ReportResult]:
        """Run a saved report for its tenant, recording the run whether it succeeds or fails."""
        report = self.report_dao.get_active_by_id(report_id)
        if not report:
            return None

        try:
            request = self._saved_request(report, run_request)
            result = self.engine.build_report(request)
        except ReportError as exc:
            error_message = str(exc.original) if isinstance(exc, ExecutionError) else exc.message
            self._log_execution(report, run_request.executed_by, success=False, error_message=error_message)
            logger.warning("Saved report %s failed: %s", report_id, error_message)
            raise

        self._log_execution(
            report,
            run_request.executed_by,
            success=True,
            execution_time_ms=result.execution_time_ms,
            row_count=result.row_count,
        )
        return result

    def get_execution_logs(self, report_id: int, limit: int = 50) -> List[ExecutionLogRead]:
        logs = self.execution_log_dao.get_by_report_id(report_id, limit=limit)
        return [ExecutionLogRead.model_validate(log) for log in logs]

    @staticmethod
    def _saved_request(report: SavedReport, run_request: RunSavedReportRequest) -> ReportRequest:
        """Rebuild the stored definition as a request scoped to the report's tenant."""
        try:
            definition = ReportDefinition.model_validate(report.definition)
        except ValidationError as exc:
            raise InvalidDefinitionError(
                f"Saved report {report.id} has an invalid definition: {exc.error_count()} validation error(s)"
            ) from exc
        return ReportRequest.from_definition(definition, tenant_id=report.tenant_id, page=run_request.page)

    def _log_execution(self, report: SavedReport, executed_by: str, success: bool, **details) -> None:
        self.execution_log_dao.create(
            report_id=report.id,
            tenant_id=report.tenant_id,
            executed_by=executed_by,
            success=success,
            **details,
        )
