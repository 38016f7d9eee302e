"""Export formatters for report results. Pure functions: no I/O, no mutation of the result."""

import io
import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple

import pandas as pd

from reportbuilder.query.schemas import ReportResult


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
    EXCEL = "excel"


def _to_frame(result: ReportResult) -> pd.DataFrame:
    """One column per report column, headed by its label, values kept as-is."""
    keys = result.column_keys
    return pd.DataFrame(
        [[row.get(key) for key in keys] for row in result.rows],
        columns=[column.label for column in result.columns],
        dtype=object,
    )


def export_csv(result: ReportResult) -> str:
    """Delimited text with standard CSV quoting; NULLs become empty cells."""
    return _to_frame(result).to_csv(index=False, lineterminator="\n")


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def export_json(result: ReportResult) -> str:
    """Row-oriented JSON document with column metadata."""
    document = {
        "columns": [column.to_dict() for column in result.columns],
        "rows": [{key: row.get(key) for key in result.column_keys} for row in result.rows],
        "row_count": result.row_count,
    }
    return json.dumps(document, default=_json_default)


def export_excel(result: ReportResult, sheet_name: str = "Report") -> bytes:
    """Single-sheet .xlsx workbook."""
    # Excel has no timezone-aware datetimes
    frame = _to_frame(result).map(
        lambda value: value.replace(tzinfo=None) if isinstance(value, datetime) else value
    )
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


class Exporter(NamedTuple):
    render: Callable[[ReportResult], Any]
    media_type: str
    extension: str


EXPORTERS: Dict[ExportFormat, Exporter] = {
    ExportFormat.CSV: Exporter(export_csv, "text/csv", "csv"),
    ExportFormat.JSON: Exporter(export_json, "application/json", "json"),
    ExportFormat.EXCEL: Exporter(
        export_excel, "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"
    ),
}
