"""Pydantic schemas for the reporting API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from reportbuilder.catalog.schemas import AggregationKind, DataType
from reportbuilder.query.schemas import PageRequest, ReportDefinition


class AvailableField(BaseModel):
    """A reportable field as offered to report designers."""

    id: str
    label: str
    owner_table: str
    data_type: DataType
    aggregation: AggregationKind
    category: str
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ReportBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class ReportCreate(ReportBase):
    tenant_id: str = Field(..., min_length=1)
    created_by: str = "system"
    definition: ReportDefinition


class ReportUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    definition: Optional[ReportDefinition] = None
    is_active: Optional[bool] = None


class ReportRead(ReportBase):
    id: int
    tenant_id: str
    created_by: str
    definition: ReportDefinition
    is_active: bool
    created_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RunSavedReportRequest(BaseModel):
    executed_by: str = "system"
    page: Optional[PageRequest] = None


class ExecutionLogRead(BaseModel):
    id: int
    report_id: int
    tenant_id: str
    executed_by: Optional[str] = None
    execution_time_ms: Optional[float] = None
    row_count: Optional[int] = None
    success: bool
    error_message: Optional[str] = None
    executed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ResultColumnRead(BaseModel):
    key: str
    field: str
    label: str
    data_type: DataType
    aggregation: AggregationKind


class ReportResultRead(BaseModel):
    columns: List[ResultColumnRead]
    rows: List[Dict[str, Any]]
    row_count: int
    execution_time_ms: Optional[float] = None
    sql: Optional[str] = None


class ReportPreviewRead(BaseModel):
    sql: str
    params: Dict[str, Any]
    tables: List[str]
    columns: List[ResultColumnRead]
