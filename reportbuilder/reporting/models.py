# reportbuilder/reporting/models.py

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Float
from sqlalchemy.orm import relationship
from datetime import datetime
from reportbuilder.core.database import Base


class SavedReport(Base):
    """A saved report definition, owned by one tenant."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    tenant_id = Column(String, nullable=False, index=True)
    created_by = Column(String, nullable=False, default="system")
    created_date = Column(DateTime, default=datetime.now)
    updated_date = Column(DateTime, default=datetime.now, onupdate=datetime.now)
    is_active = Column(Boolean, default=True)

    # Columns, filters, sorting, grouping and data sources as a JSON document
    definition = Column(JSON, nullable=False)

    execution_logs = relationship("ReportExecutionLog", back_populates="report")


class ReportExecutionLog(Base):
    """Log of saved report runs with performance metrics."""

    __tablename__ = "report_execution_logs"

    id = Column(Integer, primary_key=True, index=True)
    report_id = Column(Integer, ForeignKey("reports.id"), nullable=False, index=True)
    tenant_id = Column(String, nullable=False)
    executed_by = Column(String, nullable=True)
    execution_time_ms = Column(Float, nullable=True)
    row_count = Column(Integer, nullable=True)
    success = Column(Boolean, nullable=False)
    error_message = Column(String, nullable=True)
    executed_at = Column(DateTime, default=datetime.now)

    report = relationship("SavedReport", back_populates="execution_logs")
