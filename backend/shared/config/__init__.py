"""
Configuration module: Settings, logging, constants.
"""

from shared.config.settings import settings, get_settings, DATABASE_URL, TaxRate
from shared.config.logging import get_logger, setup_logging
from shared.config.constants import (
    OrderStatus,
    OrderType,
    KitchenType,
    TableStatus,
    TaxBehavior,
    OrderNotes,
    Limits,
)

__all__ = [
    # settings
    "settings",
    "get_settings",
    "DATABASE_URL",
    "TaxRate",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "OrderStatus",
    "OrderType",
    "KitchenType",
    "TableStatus",
    "TaxBehavior",
    "OrderNotes",
    "Limits",
]
