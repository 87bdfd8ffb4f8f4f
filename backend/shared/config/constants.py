"""
Centralized constants for the backend application.
Avoid magic strings for statuses, kitchens and order types.

Usage:
    from shared.config.constants import OrderStatus, KitchenType

    if order.status == OrderStatus.PROCESSING:
        ...
"""

from typing import Final


# =============================================================================
# Order Constants
# =============================================================================


class OrderStatus:
    """Child/pickup order status constants."""

    PROCESSING: Final[str] = "processing"  # Cooking
    PENDING: Final[str] = "pending"  # Fully ready, eligible for closure/completion
    COMPLETED: Final[str] = "completed"
    CANCELLED: Final[str] = "cancelled"

    # Status groups
    ACTIVE: Final[list[str]] = [PROCESSING, PENDING]
    FINAL: Final[list[str]] = [COMPLETED, CANCELLED]
    ALL: Final[list[str]] = [PROCESSING, PENDING, COMPLETED, CANCELLED]


class OrderType:
    """How the order is served."""

    DINEIN: Final[str] = "dinein"
    PICKUP: Final[str] = "pickup"


class KitchenType:
    """Kitchen station classification."""

    FOOD: Final[str] = "food"
    BEVERAGE: Final[str] = "beverage"
    MIXED: Final[str] = "mixed"

    # Stations that can mark an order ready
    STATIONS: Final[list[str]] = [FOOD, BEVERAGE]
    ALL: Final[list[str]] = [FOOD, BEVERAGE, MIXED]

    LABELS: Final[dict[str, str]] = {
        FOOD: "Food Kitchen",
        BEVERAGE: "Beverage Kitchen",
        MIXED: "Food & Beverage",
    }


class TaxBehavior:
    """Expected tax handling of an order, used by tax isolation checks."""

    DEFERRED: Final[str] = "deferred"  # Table child orders, tax at closure
    CALCULATED: Final[str] = "calculated"  # Pickup orders, tax at submission
    CONSOLIDATED: Final[str] = "consolidated"  # Consolidated table invoice


# =============================================================================
# Table Constants
# =============================================================================


class TableStatus:
    """Table status constants - matches schemas.py Literal types."""

    AVAILABLE: Final[str] = "available"
    OCCUPIED: Final[str] = "occupied"
    MAINTENANCE: Final[str] = "maintenance"

    ALL: Final[list[str]] = [AVAILABLE, OCCUPIED, MAINTENANCE]


# =============================================================================
# Notes
# =============================================================================


class OrderNotes:
    """System notes recorded on orders."""

    PAYMENT_CONFIRMED: Final[str] = "Payment confirmed by manager"
    FORCED_READY: Final[str] = "Automatically marked as ready during table closure"
    INDIVIDUAL_COMPLETED: Final[str] = "Order completed individually"


# =============================================================================
# Validation Limits
# =============================================================================


class Limits:
    """Validation limit constants."""

    MAX_ITEM_QUANTITY: Final[int] = 99
    MAX_ITEMS_PER_ORDER: Final[int] = 100
    MAX_NOTES_LENGTH: Final[int] = 500
    MAX_TABLE_NUMBER_LENGTH: Final[int] = 50

    # Pagination
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200
