"""
Catalog Models: Product, ProductVariant.

Only what order pricing and kitchen routing need: a name, a price in cents
and the kitchen station that prepares the item.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BigIntType, Base, TimestampMixin


class Product(TimestampMixin, Base):
    """A sellable menu product."""

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    kitchen: Mapped[str] = mapped_column(Text, default="food", nullable=False)  # food, beverage
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    variants: Mapped[list["ProductVariant"]] = relationship(back_populates="product")

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_product_price_non_negative"),
    )


class ProductVariant(TimestampMixin, Base):
    """
    A priced variation of a product (size, flavor...).
    A variant may be prepared by a different kitchen than its product.
    """

    __tablename__ = "product_variant"

    id: Mapped[int] = mapped_column(BigIntType, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("product.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    kitchen: Mapped[Optional[str]] = mapped_column(Text)  # None = inherit from product
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    product: Mapped["Product"] = relationship(back_populates="variants")

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_variant_price_non_negative"),
    )
