"""
Billing Repository - Data access for consolidated orders.
"""

from collections.abc import Iterable, Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import selectinload

from rest_api.models import ConsolidatedOrder
from .base import BaseRepository, RepositoryFilters


class ConsolidatedOrderRepository(BaseRepository[ConsolidatedOrder]):
    """Repository for ConsolidatedOrder entities (items eager loaded)."""

    @property
    def model(self) -> type[ConsolidatedOrder]:
        return ConsolidatedOrder

    def _base_query(self) -> Select:
        return (
            select(ConsolidatedOrder)
            .options(selectinload(ConsolidatedOrder.items))
            .order_by(ConsolidatedOrder.id.desc())
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return query

    def find_by_idempotency_key(self, key: str) -> ConsolidatedOrder | None:
        return self._db.scalar(
            self._base_query().where(ConsolidatedOrder.idempotency_key == key)
        )

    def find_covering(
        self,
        table_number: str,
        child_order_ids: Iterable[int],
        lookback: int = 20,
    ) -> ConsolidatedOrder | None:
        """
        Latest consolidated order of the table that already merged every one
        of `child_order_ids`.

        Matches an interrupted closure whose cleanup deleted some children
        but not all of them.
        """
        wanted = set(child_order_ids)
        if not wanted:
            return None
        for candidate in self._recent_for_table(table_number, lookback):
            if wanted <= set(candidate.child_order_ids or []):
                return candidate
        return None

    def find_billed_children(
        self,
        table_number: str,
        child_order_ids: Iterable[int],
        lookback: int = 20,
    ) -> dict[int, ConsolidatedOrder]:
        """
        Child ids already merged into one of the table's consolidated orders,
        mapped to the latest order that billed them.

        A child whose delete failed after its closure stays active and must
        not be billed again by the next closure.
        """
        wanted = set(child_order_ids)
        billed: dict[int, ConsolidatedOrder] = {}
        if not wanted:
            return billed
        for candidate in self._recent_for_table(table_number, lookback):
            for child_id in wanted.intersection(candidate.child_order_ids or []):
                billed.setdefault(child_id, candidate)
        return billed

    def _recent_for_table(self, table_number: str, lookback: int) -> Sequence[ConsolidatedOrder]:
        """Newest first."""
        return self._db.execute(
            self._base_query()
            .where(ConsolidatedOrder.table_number == table_number)
            .limit(lookback)
        ).scalars().unique().all()
