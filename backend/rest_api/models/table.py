"""
Table and Session Models: Table, DiningSession.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import BigIntType, Base, TimestampMixin, utcnow


class Table(TimestampMixin, Base):
    """
    Physical table in the dining room, identified by the number printed on
    its QR code. Status moves available -> occupied on the first order and
    back to available when the table is closed.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    table_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    capacity: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, default="available", nullable=False, index=True
    )  # available, occupied, maintenance

    def __repr__(self) -> str:
        return f"<Table(table_number='{self.table_number}', status='{self.status}')>"


class DiningSession(Base):
    """
    One dining visit at a table.

    Started by the first order of a visit, shared by every later child order
    while the lease is alive, and ended when the table is closed.
    """

    __tablename__ = "dining_session"

    # session_{table_number}_{epoch seconds}
    id: Mapped[str] = mapped_column(Text, primary_key=True)
    table_number: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_dining_session_table_ended", "table_number", "ended_at"),
    )

    def __repr__(self) -> str:
        return f"<DiningSession(id='{self.id}', table_number='{self.table_number}')>"
