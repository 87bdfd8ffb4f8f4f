"""
Billing Models: ConsolidatedOrder, ConsolidatedOrderItem.

A ConsolidatedOrder is the single, tax-final invoice of a dining visit.
It is written once when the table is closed and never updated afterwards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BigIntType, Base, JSONType, TimestampMixin, utcnow


class ImmutableRecordError(Exception):
    """A persisted consolidated order was modified."""

    pass


class ConsolidatedOrder(TimestampMixin, Base):
    """
    Merged invoice of every child order of a table.

    idempotency_key identifies the exact set of child orders that was merged;
    a retried closure finds this row instead of billing the table twice.
    """

    __tablename__ = "consolidated_order"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    table_number: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    child_order_ids: Mapped[list[int]] = mapped_column(JSONType, nullable=False)
    status: Mapped[str] = mapped_column(Text, default="completed", nullable=False)

    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    service_tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    vat_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    payment_method: Mapped[str] = mapped_column(Text, nullable=False)
    session_id: Mapped[Optional[str]] = mapped_column(Text, index=True)
    idempotency_key: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    closed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    items: Mapped[list["ConsolidatedOrderItem"]] = relationship(
        back_populates="consolidated_order",
        cascade="all, delete-orphan",
        order_by="ConsolidatedOrderItem.id",
    )

    __table_args__ = (
        CheckConstraint("total_cents >= subtotal_cents", name="chk_consolidated_total_gte_subtotal"),
    )

    def __repr__(self) -> str:
        return (
            f"<ConsolidatedOrder(id={self.id}, table_number='{self.table_number}', "
            f"total_cents={self.total_cents})>"
        )


class ConsolidatedOrderItem(Base):
    """A child order line copied verbatim into the consolidated invoice."""

    __tablename__ = "consolidated_order_item"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    consolidated_order_id: Mapped[int] = mapped_column(
        ForeignKey("consolidated_order.id"), nullable=False, index=True
    )
    # Child order ids are kept as plain values: the child rows are deleted
    source_order_id: Mapped[int] = mapped_column(BigIntType, nullable=False)
    product_id: Mapped[Optional[int]] = mapped_column(BigIntType)
    variant_id: Mapped[Optional[int]] = mapped_column(BigIntType)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    addons: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)
    base_price_cents: Mapped[Optional[int]] = mapped_column(Integer)
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    consolidated_order: Mapped["ConsolidatedOrder"] = relationship(back_populates="items")


@event.listens_for(ConsolidatedOrder, "before_update")
def _reject_consolidated_order_update(mapper, connection, target: ConsolidatedOrder) -> None:
    """Persisted consolidated orders are receipts: column changes are refused."""
    state = inspect(target)
    changed = [
        attr.key
        for attr in state.attrs
        if attr.key != "items" and attr.history.has_changes()
    ]
    if changed:
        raise ImmutableRecordError(
            f"ConsolidatedOrder {target.id} is immutable (attempted change: {', '.join(changed)})"
        )
