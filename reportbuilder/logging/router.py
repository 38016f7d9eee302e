"""API router for request logs."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from reportbuilder.core.dependencies import SessionDep
from reportbuilder.logging.dao import LogDAO
from reportbuilder.logging.schemas import LogRead

router = APIRouter(
    prefix="/logs",
    tags=["logs"],
)


def get_log_dao(session: SessionDep) -> LogDAO:
    return LogDAO(session)


@router.get("/", response_model=List[LogRead])
def get_logs(
    response: Response,
    limit: int = Query(50, ge=1, le=1000, description="Maximum number of logs to return"),
    offset: int = Query(0, ge=0, description="Number of logs to skip"),
    hours: int = Query(24, ge=1, le=168, description="Time window in hours"),
    status_min: Optional[int] = Query(None, ge=100, le=599, description="Minimum status code"),
    status_max: Optional[int] = Query(None, ge=100, le=599, description="Maximum status code"),
    search: Optional[str] = Query(None, description="Search term for filtering logs"),
    log_dao: LogDAO = Depends(get_log_dao),
) -> List[LogRead]:
    """Get logs with pagination and filtering."""
    if status_min is not None and status_max is not None and status_min > status_max:
        raise HTTPException(status_code=400, detail="status_min cannot be greater than status_max")

    logs = log_dao.get_logs_with_filters(
        limit=limit, offset=offset, hours=hours, status_min=status_min, status_max=status_max, search=search
    )
    total_count = log_dao.count_logs_with_filters(
        hours=hours, status_min=status_min, status_max=status_max, search=search
    )

    response.headers["X-Total-Count"] = str(total_count)
    response.headers["X-Page-Size"] = str(limit)
    response.headers["X-Page-Offset"] = str(offset)
    return logs
