"""
Order Models: Order, OrderItem, OrderNote.

An Order with a table_number is a child order of a dining visit; tax is
deferred until the table is closed. An Order without one is a pickup order,
taxed at submission and completed individually.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BigIntType, Base, JSONType, TimestampMixin, utcnow


class Order(TimestampMixin, Base):
    """
    A single order placed by a diner (table) or a customer (pickup).

    Readiness is tracked with one flag per kitchen station; kitchen_type says
    which of them matter. Only mixed orders need both flags.
    """

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    table_number: Mapped[Optional[str]] = mapped_column(Text, index=True)
    order_type: Mapped[str] = mapped_column(Text, default="dinein", nullable=False)  # dinein, pickup
    status: Mapped[str] = mapped_column(
        Text, default="processing", nullable=False, index=True
    )  # processing, pending, completed, cancelled
    kitchen_type: Mapped[str] = mapped_column(Text, default="food", nullable=False)  # food, beverage, mixed
    food_ready: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    beverage_ready: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    subtotal_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tax_deferred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    session_id: Mapped[Optional[str]] = mapped_column(Text, index=True)
    is_new_session: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(Text)
    special_requests: Mapped[Optional[str]] = mapped_column(Text)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    notes: Mapped[list["OrderNote"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderNote.id",
    )

    __table_args__ = (
        # Active orders of a table, oldest first
        Index("ix_order_table_status_created", "table_number", "status", "created_at"),
        CheckConstraint("subtotal_cents >= 0", name="chk_order_subtotal_non_negative"),
        CheckConstraint("tax_cents >= 0", name="chk_order_tax_non_negative"),
    )

    @property
    def is_table_order(self) -> bool:
        return bool(self.table_number)

    def add_note(self, note: str, is_system: bool = True) -> "OrderNote":
        order_note = OrderNote(note=note, is_system=is_system)
        self.notes.append(order_note)
        return order_note

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, table_number={self.table_number!r}, "
            f"status='{self.status}', kitchen_type='{self.kitchen_type}')>"
        )


class OrderItem(Base):
    """
    A line of an order.

    base_price_cents is the unit price snapshot taken at submission (before
    addons); older rows may lack it, see TableQueryService for the fallback.
    subtotal_cents is the pre-tax line amount, total_cents equals it on
    child orders because their tax is deferred.
    """

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(BigIntType)
    variant_id: Mapped[Optional[int]] = mapped_column(BigIntType)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    kitchen: Mapped[str] = mapped_column(Text, default="food", nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    # [{"id", "name", "price_cents", "quantity", "value"}]
    addons: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)
    base_price_cents: Mapped[Optional[int]] = mapped_column(Integer)
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_qty_positive"),
    )


class OrderNote(Base):
    """Free-text note on an order (kitchen readiness, payment confirmation...)."""

    __tablename__ = "order_note"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    note: Mapped[str] = mapped_column(Text, nullable=False)
    is_system: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    order: Mapped["Order"] = relationship(back_populates="notes")
