"""
Table Query Service.

Lists the orders a table still has open (processing or pending) for display
to diners and staff, newest first, with a display unit price per line.
"""

from sqlalchemy.orm import Session

from rest_api.models import OrderItem
from rest_api.repositories import CatalogRepository, OrderRepository
from shared.config.logging import get_logger
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import TableOrderItemOutput, TableOrderOutput, TableOrdersResponse

logger = get_logger(__name__)


def addon_unit_cents(addons: list[dict] | None) -> int:
    """Per-unit addon amount of a line: sum(price * addon quantity)."""
    return sum(int(a.get("price_cents") or 0) * int(a.get("quantity") or 1) for a in addons or [])


class TableQueryService:
    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderRepository(db)
        self._catalog = CatalogRepository(db)

    def get_table_orders(self, table_number: str) -> TableOrdersResponse:
        """Open orders of a table. Completed orders never appear here."""
        table_number = (table_number or "").strip()
        if not table_number:
            raise ValidationError("Table number is required", field="table_number")

        orders = self._orders.find_active_for_table(table_number, newest_first=True)
        output = [
            TableOrderOutput(
                order_id=order.id,
                status=order.status,
                kitchen_type=order.kitchen_type,
                total_cents=order.total_cents,
                created_at=order.created_at,
                items=[self._item_output(item) for item in order.items],
            )
            for order in orders
        ]
        return TableOrdersResponse(
            table_number=table_number,
            orders=output,
            order_count=len(output),
            total_cents=sum(o.total_cents for o in output),
        )

    def _item_output(self, item: OrderItem) -> TableOrderItemOutput:
        base_price, source = self.base_price(item)
        return TableOrderItemOutput(
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price_cents=base_price + addon_unit_cents(item.addons),
            base_price_cents=base_price,
            price_source=source,
            total_cents=item.total_cents,
            addons=item.addons or [],
            notes=item.notes,
        )

    def base_price(self, item: OrderItem) -> tuple[int, str]:
        """
        Unit price of a line before addons, and where it came from:

        1. "snapshot": the price stored when the order was placed
        2. "catalog": the current price of the exact variant ordered
        3. "computed": (line total - addon total) / quantity
        """
        if item.base_price_cents is not None:
            return item.base_price_cents, "snapshot"

        if item.variant_id:
            price = self._catalog.variant_price(item.variant_id)
            if price is not None:
                return price, "catalog"

        quantity = max(item.quantity, 1)
        addon_total = addon_unit_cents(item.addons) * quantity
        computed = max(item.total_cents - addon_total, 0) // quantity
        logger.debug(
            "Base price back-computed from line total",
            order_item_id=item.id,
            total_cents=item.total_cents,
            computed_cents=computed,
        )
        return computed, "computed"
