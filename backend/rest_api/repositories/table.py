"""
Table Repository - Data access for tables and dining sessions.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from rest_api.models import DiningSession, Table
from .base import BaseRepository, RepositoryFilters


@dataclass
class TableFilters(RepositoryFilters):
    """Filters specific to tables."""

    status: str | None = None


class TableRepository(BaseRepository[Table]):
    """Repository for Table entities."""

    @property
    def model(self) -> type[Table]:
        return Table

    def _base_query(self) -> Select:
        return select(Table).order_by(Table.table_number)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if isinstance(filters, TableFilters) and filters.status:
            query = query.where(Table.status == filters.status)
        return query

    def find_by_number(self, table_number: str, for_update: bool = False) -> Table | None:
        query = self._base_query().where(Table.table_number == table_number)
        if for_update:
            query = query.with_for_update()
        return self._db.scalar(query)


class DiningSessionRepository:
    """Data access for dining sessions (string primary key, no eager loading)."""

    def __init__(self, db: Session):
        self._db = db

    def find_by_id(self, session_id: str) -> DiningSession | None:
        return self._db.get(DiningSession, session_id)

    def find_live(self, table_number: str, now: datetime) -> DiningSession | None:
        """Most recent session of the table that has not ended nor expired."""
        return self._db.scalar(
            select(DiningSession)
            .where(
                DiningSession.table_number == table_number,
                DiningSession.ended_at.is_(None),
                DiningSession.expires_at > now,
            )
            .order_by(DiningSession.started_at.desc())
            .limit(1)
        )

    def find_open(self, table_number: str) -> Sequence[DiningSession]:
        """Every session of the table not yet ended, expired or not."""
        return self._db.scalars(
            select(DiningSession).where(
                DiningSession.table_number == table_number,
                DiningSession.ended_at.is_(None),
            )
        ).all()

    def save(self, session: DiningSession) -> DiningSession:
        self._db.add(session)
        self._db.flush()
        return session
