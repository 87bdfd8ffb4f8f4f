"""
Table Service - dining room table records.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from rest_api.repositories import TableFilters, TableRepository
from shared.config.constants import TableStatus
from shared.config.logging import tables_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import NotFoundError, ValidationError
from shared.utils.schemas import TableOutput


class TableService:
    """Service for table listing and status changes."""

    def __init__(self, db: Session):
        self._db = db
        self._repo = TableRepository(db)

    def list_tables(self, status: str | None = None) -> list[TableOutput]:
        """All tables, optionally only those in `status`."""
        if status is not None and status not in TableStatus.ALL:
            raise ValidationError(f"Invalid table status '{status}'", field="status")
        tables = self._repo.find_all(TableFilters(status=status, limit=200))
        return [self.to_output(t) for t in tables]

    def set_status(self, table_number: str, status: str) -> TableOutput:
        """Change a table's status, e.g. to take it out for maintenance."""
        if status not in TableStatus.ALL:
            raise ValidationError(f"Invalid table status '{status}'", field="status")

        table = self._repo.find_by_number(table_number, for_update=True)
        if table is None:
            raise NotFoundError("Table", table_number)

        previous = table.status
        table.status = status
        safe_commit(self._db)

        logger.info(
            "Table status changed",
            table_number=table_number,
            previous_status=previous,
            status=status,
        )
        return self.to_output(table)

    @staticmethod
    def to_output(table) -> TableOutput:
        return TableOutput(
            table_number=table.table_number,
            status=table.status,
            capacity=table.capacity,
        )
