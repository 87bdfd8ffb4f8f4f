"""
Table Closure Audit Model.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import BigIntType, Base, JSONType, utcnow


class TableClosureRecord(Base):
    """
    Durable record of a table closure.

    Written in the same transaction as the consolidated order and kept
    independent of the order tables, since the child orders it lists are
    deleted right after. Holds no foreign keys so it outlives the rows it lists.
    """

    __tablename__ = "table_closure_record"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    table_number: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    consolidated_order_id: Mapped[int] = mapped_column(BigIntType, nullable=False, index=True)
    child_order_ids: Mapped[list[int]] = mapped_column(JSONType, nullable=False)
    closed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    payment_method: Mapped[str] = mapped_column(Text, nullable=False)
    total_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<TableClosureRecord(table_number='{self.table_number}', "
            f"consolidated_order_id={self.consolidated_order_id})>"
        )
