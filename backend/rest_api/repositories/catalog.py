"""
Catalog Repository - price and kitchen lookup for products and variants.
"""

from dataclasses import dataclass

from sqlalchemy import Select, select
from sqlalchemy.orm import joinedload

from rest_api.models import Product, ProductVariant
from shared.config.constants import KitchenType
from .base import BaseRepository, RepositoryFilters


@dataclass(frozen=True)
class ResolvedProduct:
    """Price and routing information for one orderable product/variant."""

    product_id: int
    variant_id: int | None
    name: str
    price_cents: int
    kitchen: str


class CatalogRepository(BaseRepository[Product]):
    """Repository for Product entities and their variants."""

    @property
    def model(self) -> type[Product]:
        return Product

    def _base_query(self) -> Select:
        return select(Product).where(Product.is_active.is_(True)).order_by(Product.id)

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return query

    def find_variant(self, variant_id: int) -> ProductVariant | None:
        """Active variant with its product loaded."""
        return self._db.scalar(
            select(ProductVariant)
            .options(joinedload(ProductVariant.product))
            .where(ProductVariant.id == variant_id, ProductVariant.is_active.is_(True))
        )

    def variant_price(self, variant_id: int) -> int | None:
        """Current price of a variant, or None if it no longer exists."""
        variant = self.find_variant(variant_id)
        return variant.price_cents if variant else None

    def resolve(self, product_id: int | None, variant_id: int | None = None) -> ResolvedProduct | None:
        """
        Resolve an order line to a price.

        A valid variant wins over its product; the variant's kitchen falls back
        to the product's. Returns None when nothing resolves.
        """
        if variant_id:
            variant = self.find_variant(variant_id)
            if variant is not None and (not product_id or variant.product_id == product_id):
                product = variant.product
                return ResolvedProduct(
                    product_id=product.id,
                    variant_id=variant.id,
                    name=f"{product.name} - {variant.name}",
                    price_cents=variant.price_cents,
                    kitchen=_station(variant.kitchen or product.kitchen),
                )

        if not product_id:
            return None

        product = self.find_by_id(product_id)
        if product is None:
            return None
        return ResolvedProduct(
            product_id=product.id,
            variant_id=None,
            name=product.name,
            price_cents=product.price_cents,
            kitchen=_station(product.kitchen),
        )


def _station(kitchen: str | None) -> str:
    """Normalize a catalog kitchen value; anything unknown is cooked in the food kitchen."""
    value = (kitchen or "").strip().lower()
    return value if value in KitchenType.STATIONS else KitchenType.FOOD
