"""API router for the reporting module."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response

from reportbuilder.core.dependencies import PlannerDep, SessionDep, SettingsDep, StoreSessionDep
from reportbuilder.query.schemas import ReportRequest, ReportResult
from reportbuilder.reporting.dao import ExecutionLogDAO, ReportDAO
from reportbuilder.reporting.exporters import ExportFormat
from reportbuilder.reporting.schemas import (
    AvailableField,
    ExecutionLogRead,
    ReportCreate,
    ReportPreviewRead,
    ReportRead,
    ReportResultRead,
    ReportUpdate,
    RunSavedReportRequest,
)
from reportbuilder.reporting.service import ReportService
from reportbuilder.store.storage import ReportStorage

router = APIRouter(prefix="/reports", tags=["reporting"])


# Dependency functions
def get_report_dao(db: SessionDep) -> ReportDAO:
    return ReportDAO(db)


def get_execution_log_dao(db: SessionDep) -> ExecutionLogDAO:
    return ExecutionLogDAO(db)


def get_report_storage(store_db: StoreSessionDep) -> ReportStorage:
    return ReportStorage(store_db)


def get_report_service(
    planner: PlannerDep,
    settings: SettingsDep,
    report_dao: ReportDAO = Depends(get_report_dao),
    execution_log_dao: ExecutionLogDAO = Depends(get_execution_log_dao),
    storage: ReportStorage = Depends(get_report_storage),
) -> ReportService:
    return ReportService(report_dao, execution_log_dao, planner, storage, max_rows=settings.max_rows)


def _result_payload(result: ReportResult) -> Dict[str, Any]:
    """Result as plain JSON types (decimals to numbers, dates to ISO strings)."""
    return jsonable_encoder({**result.to_dict(), "sql": result.sql})


# ===== FIELD CATALOG =====


@router.get("/fields", response_model=List[AvailableField])
def get_available_fields(service: ReportService = Depends(get_report_service)) -> List[AvailableField]:
    """Fields that can be selected, filtered, sorted or grouped on."""
    return [AvailableField.model_validate(field) for field in service.get_available_fields()]


# ===== AD-HOC EXECUTION ENDPOINTS =====


@router.post("/execute", response_model=ReportResultRead)
def execute_report(request: ReportRequest, service: ReportService = Depends(get_report_service)):
    """Run a report definition without saving it."""
    return _result_payload(service.execute(request))


@router.post("/preview", response_model=ReportPreviewRead)
def preview_report(request: ReportRequest, service: ReportService = Depends(get_report_service)):
    """The SQL and join plan a request would run, without running it."""
    return jsonable_encoder(service.preview(request))


@router.post("/export")
def export_report(
    request: ReportRequest,
    format: ExportFormat = Query(ExportFormat.CSV, description="csv, json or excel"),
    service: ReportService = Depends(get_report_service),
) -> Response:
    """Run a report definition and download it."""
    content, media_type, extension = service.export(request, format)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="report.{extension}"'},
    )


# ===== SAVED REPORT ENDPOINTS =====


@router.get("/", response_model=List[ReportRead])
def get_all_reports(
    tenant_id: Optional[str] = Query(None, description="Only reports of this tenant"),
    service: ReportService = Depends(get_report_service),
) -> List[ReportRead]:
    return service.get_all(tenant_id)


@router.post("/", response_model=ReportRead, status_code=201)
def create_report(report_data: ReportCreate, service: ReportService = Depends(get_report_service)) -> ReportRead:
    return service.create(report_data)


@router.get("/{report_id}", response_model=ReportRead)
def get_report_by_id(report_id: int, service: ReportService = Depends(get_report_service)) -> ReportRead:
    report = service.get_by_id(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.patch("/{report_id}", response_model=ReportRead)
def update_report(
    report_id: int, report_data: ReportUpdate, service: ReportService = Depends(get_report_service)
) -> ReportRead:
    report = service.update(report_id, report_data)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.delete("/{report_id}")
def delete_report(report_id: int, service: ReportService = Depends(get_report_service)) -> Dict[str, str]:
    if not service.delete(report_id):
        raise HTTPException(status_code=404, detail="Report not found")
    return {"message": "Report deleted successfully"}


@router.post("/{report_id}/run", response_model=ReportResultRead)
def run_saved_report(
    report_id: int,
    run_request: Optional[RunSavedReportRequest] = None,
    service: ReportService = Depends(get_report_service),
):
    """Run a saved report for its tenant and record the execution."""
    result = service.run_saved_report(report_id, run_request or RunSavedReportRequest())
    if result is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return _result_payload(result)


@router.get("/{report_id}/executions", response_model=List[ExecutionLogRead])
def get_report_executions(
    report_id: int,
    limit: int = Query(50, ge=1, le=500),
    service: ReportService = Depends(get_report_service),
) -> List[ExecutionLogRead]:
    if service.get_by_id(report_id) is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return service.get_execution_logs(report_id, limit=limit)
