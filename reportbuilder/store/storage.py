"""Storage handle the report engine executes assembled queries through."""

from typing import Any, Dict, List

from sqlalchemy.engine import Dialect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select


class ReportStorage:
    """Runs report queries against an explicitly provided store session."""

    def __init__(self, session: Session):
        self.session = session

    @property
    def dialect(self) -> Dialect:
        return self.session.get_bind().dialect

    def fetch(self, statement: Select) -> List[Dict[str, Any]]:
        """Execute a select and return rows as plain dicts keyed by column label."""
        try:
            result = self.session.execute(statement)
            return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError:
            self.session.rollback()
            raise
