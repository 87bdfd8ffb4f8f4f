"""
Order Submission Service.

Creates table child orders (tax deferred to closure) and pickup orders
(taxed immediately). Both accepted payload shapes are normalized to one
canonical item list before pricing.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy.orm import Session

from rest_api.models import Order, OrderItem
from rest_api.repositories import CatalogRepository, TableRepository
from rest_api.services.events.notification_service import NotificationService
from shared.config.constants import OrderStatus, OrderType, TableStatus, TaxBehavior
from shared.config.logging import orders_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import (
    AddonInput,
    OrderItemInput,
    SubmitOrderRequest,
    SubmitOrderResponse,
    SubmitPickupOrderRequest,
)
from .readiness import classify_kitchen_type
from .session_service import DiningSessionService
from .tax_service import TaxService


@dataclass(frozen=True)
class CanonicalItem:
    """An order line after normalization, before pricing."""

    product_id: int | None
    variant_id: int | None
    quantity: int
    notes: str | None = None
    name: str | None = None
    # [{"id", "name", "price_cents", "quantity", "value"}]
    addons: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class OrderDraft:
    table_number: str
    items: list[CanonicalItem]
    client_total_cents: int | None = None
    special_requests: str | None = None


def to_cents(amount: float | int | None) -> int:
    """Major currency units to cents, rounding half up."""
    if not amount:
        return 0
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _normalize_addon(addon: AddonInput) -> dict[str, Any]:
    price_cents = addon.price_cents if addon.price_cents is not None else to_cents(addon.price)
    return {
        "id": addon.id,
        "name": addon.name or "",
        "price_cents": price_cents,
        "quantity": addon.quantity,
        "value": addon.value,
    }


def _first_variation_id(variations: list[dict[str, Any]]) -> int | None:
    for variation in variations:
        raw = variation.get("variation_id") or variation.get("id")
        try:
            variation_id = int(raw)
        except (TypeError, ValueError):
            continue
        if variation_id > 0:
            return variation_id
    return None


def normalize_items(items: list[OrderItemInput]) -> list[CanonicalItem]:
    """Canonical lines from either item shape (product_id/id, add_ons/addons)."""
    canonical = []
    for item in items:
        addons = item.add_ons or item.addons
        canonical.append(
            CanonicalItem(
                product_id=item.product_id or item.id,
                variant_id=item.variation_id or _first_variation_id(item.variations),
                quantity=item.quantity,
                notes=(item.notes or "").strip() or None,
                name=item.name,
                addons=[_normalize_addon(a) for a in addons],
            )
        )
    return canonical


def normalize_submission(request: SubmitOrderRequest) -> OrderDraft:
    """
    Canonical draft of a table order submission.

    Raises ValidationError for an empty table number or item list.
    """
    if request.order_data is not None:
        data = request.order_data
        table_number = data.table_number
        items = data.items
        client_total = to_cents(data.total) if data.total else None
        special_requests = data.special_requests
    else:
        table_number = request.table_number
        items = request.cart_items or []
        client_total = None
        special_requests = request.special_requests

    table_number = (table_number or "").strip()
    if not table_number:
        raise ValidationError("Table number is required", field="table_number")
    if not items:
        raise ValidationError(
            "Order must contain at least one item", field="items", table_number=table_number
        )

    return OrderDraft(
        table_number=table_number,
        items=normalize_items(items),
        client_total_cents=client_total,
        special_requests=(special_requests or "").strip() or None,
    )


def line_total_cents(base_price_cents: int, addons: list[dict[str, Any]], quantity: int) -> int:
    """(base + sum(addon price * addon quantity)) * quantity."""
    addon_total = sum(a["price_cents"] * a["quantity"] for a in addons)
    return (base_price_cents + addon_total) * quantity


class OrderSubmissionService:
    """Domain service for placing orders."""

    def __init__(
        self,
        db: Session,
        tax_service: TaxService,
        notifier: NotificationService,
        session_window_hours: int = 2,
        session_lease_hours: int = 4,
    ):
        self._db = db
        self._tax = tax_service
        self._notifier = notifier
        self._catalog = CatalogRepository(db)
        self._tables = TableRepository(db)
        self._sessions = DiningSessionService(db, session_window_hours, session_lease_hours)

    def submit_table_order(self, request: SubmitOrderRequest) -> SubmitOrderResponse:
        """
        Place a child order for a table.

        Tax is deferred: total = subtotal and tax = 0 until the table is
        closed. The table becomes occupied.
        """
        if request.order_data is None and not request.table_number and request.table_id:
            # Cart payload may identify the table by record id only
            table = self._tables.find_by_id(request.table_id)
            if table is not None:
                request = request.model_copy(update={"table_number": table.table_number})
        draft = normalize_submission(request)

        order_items, skipped = self._price_items(draft.items, draft.table_number)
        subtotal = sum(item.subtotal_cents for item in order_items)
        if not order_items and draft.client_total_cents:
            logger.warning(
                "No item could be priced, using client total",
                table_number=draft.table_number,
                client_total_cents=draft.client_total_cents,
            )
            subtotal = draft.client_total_cents
        if subtotal == 0 and not order_items:
            raise ValidationError(
                "None of the ordered items could be found in the catalog",
                table_number=draft.table_number,
                skipped_items=skipped,
            )

        resolution = self._sessions.resolve(draft.table_number)

        order = Order(
            table_number=draft.table_number,
            order_type=OrderType.DINEIN,
            status=OrderStatus.PROCESSING,
            kitchen_type=classify_kitchen_type(item.kitchen for item in order_items),
            subtotal_cents=subtotal,
            tax_cents=0,
            total_cents=subtotal,
            tax_deferred=True,
            session_id=resolution.session_id,
            is_new_session=resolution.is_new_session,
            special_requests=draft.special_requests,
            items=order_items,
        )
        self._db.add(order)

        table = self._tables.find_by_number(draft.table_number, for_update=True)
        if table is None:
            logger.warning("Table record not found, status not updated", table_number=draft.table_number)
        else:
            table.status = TableStatus.OCCUPIED

        self._db.flush()
        self._tax.validate_tax_isolation(order, TaxBehavior.DEFERRED)
        safe_commit(self._db)

        logger.info(
            "Table order submitted",
            order_id=order.id,
            table_number=order.table_number,
            session_id=order.session_id,
            is_new_session=order.is_new_session,
            kitchen_type=order.kitchen_type,
            total_cents=order.total_cents,
            skipped_items=skipped,
        )
        self._notifier.order_placed(order)
        return self._to_response(order, skipped)

    def submit_pickup_order(self, request: SubmitPickupOrderRequest) -> SubmitOrderResponse:
        """Place a pickup order. Tax is computed immediately."""
        if not request.items:
            raise ValidationError("Order must contain at least one item", field="items")

        order_items, skipped = self._price_items(normalize_items(request.items), None)
        if not order_items:
            raise ValidationError(
                "None of the ordered items could be found in the catalog", skipped_items=skipped
            )

        subtotal = sum(item.subtotal_cents for item in order_items)
        breakdown = self._tax.calculate(subtotal)
        order = Order(
            table_number=None,
            order_type=OrderType.PICKUP,
            status=OrderStatus.PROCESSING,
            kitchen_type=classify_kitchen_type(item.kitchen for item in order_items),
            subtotal_cents=subtotal,
            tax_cents=breakdown.total_tax_cents,
            total_cents=breakdown.grand_total_cents,
            tax_deferred=False,
            special_requests=(request.special_requests or "").strip() or None,
            items=order_items,
        )
        self._db.add(order)
        self._db.flush()
        self._tax.validate_tax_isolation(order, TaxBehavior.CALCULATED)
        safe_commit(self._db)

        logger.info(
            "Pickup order submitted",
            order_id=order.id,
            kitchen_type=order.kitchen_type,
            subtotal_cents=order.subtotal_cents,
            tax_cents=order.tax_cents,
        )
        self._notifier.order_placed(order)
        return self._to_response(order, skipped)

    def _price_items(
        self,
        items: list[CanonicalItem],
        table_number: str | None,
    ) -> tuple[list[OrderItem], int]:
        """Price each line from the catalog; unresolvable lines are skipped."""
        priced = []
        skipped = 0
        for item in items:
            resolved = self._catalog.resolve(item.product_id, item.variant_id)
            if resolved is None:
                skipped += 1
                logger.warning(
                    "Skipping order item that could not be resolved",
                    table_number=table_number,
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    name=item.name,
                )
                continue

            line_total = line_total_cents(resolved.price_cents, item.addons, item.quantity)
            priced.append(
                OrderItem(
                    product_id=resolved.product_id,
                    variant_id=resolved.variant_id,
                    product_name=resolved.name,
                    kitchen=resolved.kitchen,
                    quantity=item.quantity,
                    notes=item.notes,
                    addons=item.addons,
                    base_price_cents=resolved.price_cents,
                    subtotal_cents=line_total,
                    total_cents=line_total,
                )
            )
        return priced, skipped

    @staticmethod
    def _to_response(order: Order, skipped: int) -> SubmitOrderResponse:
        return SubmitOrderResponse(
            order_id=order.id,
            table_number=order.table_number,
            order_type=order.order_type,
            status=order.status,
            kitchen_type=order.kitchen_type,
            session_id=order.session_id,
            is_new_session=order.is_new_session,
            subtotal_cents=order.subtotal_cents,
            tax_cents=order.tax_cents,
            total_cents=order.total_cents,
            tax_deferred=order.tax_deferred,
            skipped_items=skipped,
        )
