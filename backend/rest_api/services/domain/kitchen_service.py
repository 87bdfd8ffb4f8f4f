"""
Kitchen Service.

Drives the per-order state machine from the kitchen side:

    processing --(every involved station ready)--> pending --(payment)--> completed

A mixed order with only one station finished stays processing; its flags
carry the partial progress.
"""

from sqlalchemy.orm import Session

from rest_api.models import Order
from rest_api.repositories import OrderRepository
from rest_api.services.events.notification_service import NotificationService
from shared.config.constants import KitchenType, OrderNotes, OrderStatus
from shared.config.logging import kitchen_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import InvalidStateError, OrderNotFoundError, ValidationError
from shared.utils.schemas import (
    ConfirmPaymentResponse,
    KitchenQueueItem,
    KitchenQueueOrder,
    KitchenSummary,
    MarkReadyResponse,
)
from .kitchen_classification import readiness_status
from .readiness import (
    MixedReadiness,
    apply_readiness,
    is_complete,
    mark_station_ready,
    pending_kitchens,
    readiness_of,
)


class KitchenService:
    """Domain service for kitchen readiness and the kitchen queue."""

    def __init__(self, db: Session, notifier: NotificationService):
        self._db = db
        self._notifier = notifier
        self._orders = OrderRepository(db)

    def mark_ready(self, order_id: int, kitchen: str = KitchenType.FOOD) -> MarkReadyResponse:
        """
        Record that `kitchen` finished its part of the order.

        Raises:
            ValidationError: kitchen is not food or beverage
            OrderNotFoundError: unknown order
            InvalidStateError: order is not processing or pending
        """
        kitchen = (kitchen or KitchenType.FOOD).strip().lower()
        if kitchen not in KitchenType.STATIONS:
            raise ValidationError(
                f"Invalid kitchen '{kitchen}', expected one of: {', '.join(KitchenType.STATIONS)}",
                field="kitchen",
                order_id=order_id,
            )

        order = self._orders.find_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.status not in OrderStatus.ACTIVE:
            raise InvalidStateError(
                f"Order #{order_id}", order.status, OrderStatus.ACTIVE, order_id=order_id
            )

        previous_status = order.status
        readiness = mark_station_ready(readiness_of(order), kitchen)
        apply_readiness(order, readiness)

        complete = is_complete(readiness)
        if complete:
            order.status = OrderStatus.PENDING
        partial = isinstance(readiness, MixedReadiness) and not complete

        if partial:
            waiting = KitchenType.LABELS[pending_kitchens(readiness)[0]]
            message = f"{KitchenType.LABELS[kitchen]} ready, waiting for {waiting}"
        else:
            message = f"Order #{order.id} is ready"
        order.add_note(f"{KitchenType.LABELS[kitchen]} marked order ready")

        safe_commit(self._db)

        logger.info(
            "Order marked ready",
            order_id=order.id,
            kitchen=kitchen,
            kitchen_type=order.kitchen_type,
            food_ready=order.food_ready,
            beverage_ready=order.beverage_ready,
            status=order.status,
        )

        if previous_status == OrderStatus.PROCESSING and order.status == OrderStatus.PENDING:
            self._notifier.order_ready(order)

        return MarkReadyResponse(
            order_id=order.id,
            table_number=order.table_number,
            order_type=order.order_type,
            kitchen_type=order.kitchen_type,
            status=order.status,
            partial_ready=partial,
            readiness=readiness_status(order),
            message=message,
        )

    def confirm_payment(self, order_id: int) -> ConfirmPaymentResponse:
        """
        Mark an order paid. Idempotent: an already completed order is left
        untouched and no second note is written.
        """
        order = self._orders.find_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)

        if order.status == OrderStatus.COMPLETED:
            logger.info("Payment already confirmed", order_id=order.id)
            return ConfirmPaymentResponse(order_id=order.id, status=order.status, changed=False)

        previous_status = order.status
        order.status = OrderStatus.COMPLETED
        order.add_note(OrderNotes.PAYMENT_CONFIRMED)
        safe_commit(self._db)

        logger.info("Payment confirmed", order_id=order.id, previous_status=previous_status)
        return ConfirmPaymentResponse(order_id=order.id, status=order.status, changed=True)

    def get_queue(
        self,
        kitchen_type: str | None = None,
        readiness: str | None = None,
    ) -> list[KitchenQueueOrder]:
        """
        Orders still cooking, oldest first.

        kitchen_type: food, beverage or mixed (None/"all" for every order)
        readiness: "waiting" (no station done) or "ready" (at least one done)
        """
        orders = self._orders.find_kitchen_queue(
            kitchen_type=None if kitchen_type in (None, "all") else kitchen_type,
            readiness=None if readiness in (None, "all") else readiness,
        )
        return [self._to_queue_order(order) for order in orders]

    def get_summary(self) -> KitchenSummary:
        """Counts over the whole processing queue."""
        orders = self._orders.find_kitchen_queue()
        return KitchenSummary(
            total=len(orders),
            food=sum(1 for o in orders if o.kitchen_type == KitchenType.FOOD),
            beverage=sum(1 for o in orders if o.kitchen_type == KitchenType.BEVERAGE),
            mixed=sum(1 for o in orders if o.kitchen_type == KitchenType.MIXED),
            waiting=sum(1 for o in orders if not o.food_ready and not o.beverage_ready),
            partially_ready=sum(
                1
                for o in orders
                if o.kitchen_type == KitchenType.MIXED and (o.food_ready != o.beverage_ready)
            ),
            food_ready=sum(1 for o in orders if o.food_ready),
            beverage_ready=sum(1 for o in orders if o.beverage_ready),
        )

    @staticmethod
    def _to_queue_order(order: Order) -> KitchenQueueOrder:
        return KitchenQueueOrder(
            order_id=order.id,
            table_number=order.table_number,
            order_type=order.order_type,
            created_at=order.created_at,
            readiness=readiness_status(order),
            special_requests=order.special_requests,
            items=[
                KitchenQueueItem(
                    product_name=item.product_name,
                    kitchen=item.kitchen,
                    quantity=item.quantity,
                    notes=item.notes,
                    addons=item.addons or [],
                )
                for item in order.items
            ],
        )
