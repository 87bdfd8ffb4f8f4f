"""
Notification Service.

Publishes order lifecycle notifications to Redis pub/sub for staff and
diner screens. Delivery is best effort: a failed publish is logged and the
business operation that triggered it still succeeds. Call these methods
only after the triggering transaction has committed.
"""

from collections.abc import Callable

import redis

from rest_api.models import ConsolidatedOrder, Order
from shared.config.constants import KitchenType
from shared.config.logging import get_logger
from shared.infrastructure.events import (
    ORDER_COMPLETED,
    ORDER_PLACED,
    ORDER_READY,
    TABLE_CLOSED,
    Event,
    channel_kitchen,
    channel_staff,
    channel_table,
    publish_event,
)

logger = get_logger(__name__)


class NotificationService:
    """Publishes order events through a Redis client obtained per call."""

    def __init__(self, client_factory: Callable[[], redis.Redis], enabled: bool = True):
        self._client_factory = client_factory
        self._enabled = enabled

    def order_placed(self, order: Order) -> bool:
        """New order: every kitchen that has to cook it plus floor staff."""
        if order.kitchen_type == KitchenType.MIXED:
            kitchens = list(KitchenType.STATIONS)
        else:
            kitchens = [order.kitchen_type]
        channels = [channel_kitchen(k) for k in kitchens] + [channel_staff()]
        return self._publish(
            Event(
                type=ORDER_PLACED,
                table_number=order.table_number,
                order_id=order.id,
                session_id=order.session_id,
                entity={
                    "order_type": order.order_type,
                    "kitchen_type": order.kitchen_type,
                    "total_cents": order.total_cents,
                    "item_count": len(order.items),
                },
            ),
            channels,
        )

    def order_ready(self, order: Order) -> bool:
        """Order fully ready: staff serve it, the table sees its status change."""
        channels = [channel_staff()]
        if order.table_number:
            channels.append(channel_table(order.table_number))
        return self._publish(
            Event(
                type=ORDER_READY,
                table_number=order.table_number,
                order_id=order.id,
                session_id=order.session_id,
                entity={"kitchen_type": order.kitchen_type, "order_type": order.order_type},
            ),
            channels,
        )

    def order_completed(self, order: Order) -> bool:
        return self._publish(
            Event(
                type=ORDER_COMPLETED,
                order_id=order.id,
                entity={
                    "payment_method": order.payment_method,
                    "total_cents": order.total_cents,
                },
            ),
            [channel_staff()],
        )

    def table_closed(self, consolidated: ConsolidatedOrder) -> bool:
        return self._publish(
            Event(
                type=TABLE_CLOSED,
                table_number=consolidated.table_number,
                order_id=consolidated.id,
                session_id=consolidated.session_id,
                entity={
                    "child_order_ids": list(consolidated.child_order_ids),
                    "total_cents": consolidated.total_cents,
                    "payment_method": consolidated.payment_method,
                },
            ),
            [channel_staff(), channel_table(consolidated.table_number)],
        )

    def _publish(self, event: Event, channels: list[str]) -> bool:
        """Publish to every channel; returns False if any publish failed."""
        if not self._enabled:
            logger.debug("Notifications disabled, skipping", event_type=event.type)
            return False

        delivered = True
        for channel in channels:
            try:
                publish_event(self._client_factory(), channel, event)
            except (redis.RedisError, ValueError) as e:
                delivered = False
                logger.error(
                    "Failed to publish notification",
                    channel=channel,
                    event_type=event.type,
                    order_id=event.order_id,
                    error=str(e),
                )
        return delivered
