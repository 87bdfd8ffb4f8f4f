"""
Order Completion Service.

Completes a single non-table order (pickup): applies the payment method,
taxes it and marks it completed. Table orders are only ever paid through
table closure.
"""

from sqlalchemy.orm import Session

from rest_api.models import utcnow
from rest_api.repositories import OrderRepository
from rest_api.services.events.notification_service import NotificationService
from shared.config.constants import OrderNotes, OrderStatus, TaxBehavior
from shared.config.logging import orders_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import InvalidStateError, OrderNotFoundError, ValidationError
from shared.utils.schemas import CompleteOrderResponse
from .tax_service import TaxService


def receipt_url(order_id: int) -> str:
    """
    Receipt reference handed back to the till.

    The path is served by the receipt renderer deployed next to this API
    (same host, routed by the gateway), not by this service.
    """
    return f"/api/orders/{order_id}/receipt"


class OrderCompletionService:
    def __init__(
        self,
        db: Session,
        tax_service: TaxService,
        notifier: NotificationService,
        default_payment_method: str = "cash",
    ):
        self._db = db
        self._tax = tax_service
        self._notifier = notifier
        self._default_payment_method = default_payment_method
        self._orders = OrderRepository(db)

    def complete(self, order_id: int, payment_method: str | None = None) -> CompleteOrderResponse:
        """
        Complete an individual order.

        Tax is recomputed from the subtotal, so completing an order that was
        already taxed at submission does not add tax twice.

        Raises:
            OrderNotFoundError: unknown order
            ValidationError: the order belongs to a table
            InvalidStateError: the order is already completed or cancelled
        """
        order = self._orders.find_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.is_table_order:
            raise ValidationError(
                "This is a table order. Use Close Table instead.",
                order_id=order_id,
                table_number=order.table_number,
            )
        if order.status in OrderStatus.FINAL:
            raise InvalidStateError(
                f"Order #{order_id}", order.status, OrderStatus.ACTIVE, order_id=order_id
            )

        method = (payment_method or "").strip() or self._default_payment_method
        breakdown = self._tax.calculate_individual_order_taxes(order)

        order.payment_method = method
        order.tax_cents = breakdown.total_tax_cents
        order.total_cents = breakdown.grand_total_cents
        order.tax_deferred = False
        order.status = OrderStatus.COMPLETED
        order.completed_at = utcnow()
        order.add_note(OrderNotes.INDIVIDUAL_COMPLETED)

        self._db.flush()
        self._tax.validate_tax_isolation(order, TaxBehavior.CALCULATED)
        safe_commit(self._db)

        logger.info(
            "Individual order completed",
            order_id=order.id,
            payment_method=method,
            subtotal_cents=order.subtotal_cents,
            tax_cents=order.tax_cents,
            total_cents=order.total_cents,
        )
        self._notifier.order_completed(order)

        return CompleteOrderResponse(
            order_id=order.id,
            status=order.status,
            payment_method=order.payment_method,
            subtotal_cents=order.subtotal_cents,
            tax_cents=order.tax_cents,
            total_cents=order.total_cents,
            receipt_url=receipt_url(order.id),
            tax_summary=self._tax.get_tax_summary(order),
        )
