"""
Base Repository.

Every repository owns one base query that already carries the eager loading
its callers need, so services never trigger lazy loads on detached rows.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

from shared.config.constants import Limits


ModelT = TypeVar("ModelT")


@dataclass
class RepositoryFilters:
    limit: int = Limits.DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self):
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)


class BaseRepository(ABC, Generic[ModelT]):
    """
    Subclasses provide:
    - model: the mapped class
    - _base_query(): select with eager loading and default ordering
    - _apply_filters(): entity-specific WHERE clauses
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        ...

    @abstractmethod
    def _base_query(self) -> Select:
        ...

    @abstractmethod
    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        ...

    def find_all(self, filters: RepositoryFilters | None = None) -> Sequence[ModelT]:
        """Entities matching `filters`, one page."""
        filters = filters or RepositoryFilters()
        query = self._apply_filters(self._base_query(), filters)
        query = query.offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).scalars().unique().all()

    def find_by_id(self, entity_id: int, for_update: bool = False) -> ModelT | None:
        """
        One entity by primary key.

        for_update=True locks the row (SELECT ... FOR UPDATE) until the
        transaction ends; kitchen and closure requests on the same order
        serialize on it.
        """
        query = self._base_query().where(self.model.id == entity_id)
        if for_update:
            query = query.with_for_update()
        return self._db.scalar(query)
