# reportbuilder/logging/exception_handlers.py

import json
import logging
import traceback
from datetime import datetime
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reportbuilder.core.exceptions import (
    CatalogConfigError,
    ExecutionError,
    InvalidAggregationError,
    InvalidDefinitionError,
    InvalidFilterError,
    MissingTenantError,
    ReportError,
    ResultTooLargeError,
    UnknownFieldError,
    UnresolvableFieldError,
)
from reportbuilder.logging.middleware import current_hostname, current_username, persist_log
from reportbuilder.logging.models import Log

logger = logging.getLogger(__name__)

REPORT_ERROR_STATUS: Dict[Type[ReportError], int] = {
    UnknownFieldError: 400,
    UnresolvableFieldError: 400,
    InvalidAggregationError: 400,
    InvalidFilterError: 400,
    InvalidDefinitionError: 400,
    MissingTenantError: 400,
    ResultTooLargeError: 413,
    ExecutionError: 502,
    CatalogConfigError: 500,
}


def safe_json_dumps(obj) -> str:
    return json.dumps(obj, indent=2, default=str)


def status_for(exc: ReportError) -> int:
    for cls in type(exc).__mro__:
        if cls in REPORT_ERROR_STATUS:
            return REPORT_ERROR_STATUS[cls]
    return 500


async def report_error_handler(request: Request, exc: ReportError):
    """Map report errors to HTTP responses. The logging middleware records them."""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("Report request %s failed: %s", request.url.path, getattr(exc, "original", exc))
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions and log them to the database."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    log = Log(
        timestamp=datetime.now(),
        method=request.method,
        path=str(request.url.path),
        status_code=500,
        client_ip=request.client.host if request.client else None,
        request_headers=json.dumps(dict(request.headers)),
        request_body=None,
        response_body=safe_json_dumps(
            {"error": str(exc), "type": type(exc).__name__, "traceback": traceback.format_exc()}
        ),
        processing_time=None,
        user_agent=request.headers.get("user-agent"),
        username=current_username(),
        hostname=current_hostname(),
        application_id=request.app.state.settings.application_id,
    )
    persist_log(request.app.state.config_db, log)

    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReportError, report_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
