"""Data Access Objects for saved reports and their execution logs."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from reportbuilder.core.base_dao import BaseDAO
from reportbuilder.reporting.models import ReportExecutionLog, SavedReport


class ReportDAO(BaseDAO[SavedReport]):
    def __init__(self, db_session: Session):
        super().__init__(SavedReport, db_session)

    def get_active(self, tenant_id: Optional[str] = None) -> List[SavedReport]:
        """Active reports, optionally for one tenant, most recently created first."""
        stmt = select(SavedReport).where(SavedReport.is_active == True)  # noqa: E712
        if tenant_id is not None:
            stmt = stmt.where(SavedReport.tenant_id == tenant_id)
        stmt = stmt.order_by(SavedReport.created_date.desc(), SavedReport.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def get_active_by_id(self, report_id: int) -> Optional[SavedReport]:
        report = self.get_by_id(report_id)
        if report is None or not report.is_active:
            return None
        return report


class ExecutionLogDAO(BaseDAO[ReportExecutionLog]):
    def __init__(self, db_session: Session):
        super().__init__(ReportExecutionLog, db_session)

    def get_by_report_id(self, report_id: int, limit: int = 50) -> List[ReportExecutionLog]:
        """Execution logs for a report, most recent first."""
        stmt = (
            select(ReportExecutionLog)
            .where(ReportExecutionLog.report_id == report_id)
            .order_by(ReportExecutionLog.executed_at.desc(), ReportExecutionLog.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())
