"""
Order Repository - Data access for child and pickup orders.
Items and notes are always eager loaded.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from sqlalchemy import Select, and_, delete, exists, or_, select
from sqlalchemy.orm import selectinload

from rest_api.models import Order, OrderItem, OrderNote
from shared.config.constants import KitchenType, OrderStatus
from .base import BaseRepository, RepositoryFilters


@dataclass
class OrderFilters(RepositoryFilters):
    """Filters specific to orders."""

    table_number: str | None = None
    status: str | None = None
    statuses: list[str] | None = None
    kitchen_type: str | None = None
    # "waiting" = no kitchen has finished, "ready" = at least one flag set
    readiness: str | None = None


class OrderRepository(BaseRepository[Order]):
    """Repository for Order entities."""

    @property
    def model(self) -> type[Order]:
        return Order

    def _base_query(self) -> Select:
        return (
            select(Order)
            .options(selectinload(Order.items), selectinload(Order.notes))
            .order_by(Order.created_at.asc(), Order.id.asc())
        )

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, OrderFilters):
            filters = OrderFilters(**filters.__dict__)

        if filters.table_number:
            query = query.where(Order.table_number == filters.table_number)

        if filters.status:
            query = query.where(Order.status == filters.status)
        elif filters.statuses:
            query = query.where(Order.status.in_(filters.statuses))

        if filters.kitchen_type:
            query = query.where(Order.kitchen_type == filters.kitchen_type)

        if filters.readiness == "waiting":
            query = query.where(Order.food_ready.is_(False), Order.beverage_ready.is_(False))
        elif filters.readiness == "ready":
            query = query.where(or_(Order.food_ready.is_(True), Order.beverage_ready.is_(True)))

        return query

    def find_active_for_table(
        self,
        table_number: str,
        for_update: bool = False,
        newest_first: bool = False,
    ) -> Sequence[Order]:
        """
        Processing and pending orders of a table.

        Oldest first by default (closure order); newest first for display.
        """
        query = self._base_query().where(
            Order.table_number == table_number,
            Order.status.in_(OrderStatus.ACTIVE),
        )
        if newest_first:
            query = query.order_by(None).order_by(Order.created_at.desc(), Order.id.desc())
        if for_update:
            query = query.with_for_update()
        return self._db.execute(query).scalars().unique().all()

    def has_active_since(self, table_number: str, since: datetime) -> bool:
        """True if the table has a processing/pending order created after `since`."""
        query = select(
            exists().where(
                and_(
                    Order.table_number == table_number,
                    Order.status.in_(OrderStatus.ACTIVE),
                    Order.created_at >= since,
                )
            )
        )
        return bool(self._db.scalar(query))

    def find_kitchen_queue(
        self,
        kitchen_type: str | None = None,
        readiness: str | None = None,
    ) -> Sequence[Order]:
        """Orders the kitchen still has to prepare, oldest first."""
        filters = OrderFilters(
            status=OrderStatus.PROCESSING,
            kitchen_type=kitchen_type if kitchen_type in KitchenType.ALL else None,
            readiness=readiness,
            limit=200,
        )
        return self.find_all(filters)

    def bulk_delete(self, order_id: int) -> int:
        """
        Delete an order and its rows with Core statements, bypassing the ORM
        unit of work. Returns the number of order rows deleted.
        """
        self._db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
        self._db.execute(delete(OrderNote).where(OrderNote.order_id == order_id))
        result = self._db.execute(delete(Order).where(Order.id == order_id))
        return result.rowcount or 0
