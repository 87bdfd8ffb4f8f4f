"""
Kitchen Classification Service.

Reports an order's kitchen type and readiness in the shape shown to staff
screens, with a short badge for each.
"""

from rest_api.models import Order
from shared.config.constants import KitchenType
from shared.utils.schemas import ReadinessStatus
from .readiness import is_complete, pending_kitchens, readiness_of

_BADGES = {
    KitchenType.FOOD: "🍕 Food",
    KitchenType.BEVERAGE: "🥤 Beverages",
    KitchenType.MIXED: "🍽️ Mixed",
}


def kitchen_badge(kitchen_type: str) -> str:
    return _BADGES.get(kitchen_type, _BADGES[KitchenType.FOOD])


def readiness_status(order: Order) -> ReadinessStatus:
    """Current readiness of an order."""
    readiness = readiness_of(order)
    waiting = pending_kitchens(readiness)
    return ReadinessStatus(
        kitchen_type=order.kitchen_type,
        food_ready=bool(order.food_ready),
        beverage_ready=bool(order.beverage_ready),
        all_ready=is_complete(readiness),
        waiting_for=waiting,
        badge=readiness_badge(order.kitchen_type, waiting),
    )


def readiness_badge(kitchen_type: str, waiting_for: list[str]) -> str:
    if not waiting_for:
        return "✅ Ready"
    if kitchen_type == KitchenType.MIXED and len(waiting_for) == 1:
        return "⏳ Waiting for " + KitchenType.LABELS[waiting_for[0]]
    return "🔥 Cooking"
